"""Colors and card tags for the board view (no tkinter import, so it is testable headless)."""
import datetime as dt
from typing import List, Optional, Tuple

from devtasker.core.models import Task

PRIORITY_COLORS = {
    "urgent": "#EF4444",
    "high": "#F97316",
    "medium": "#EAB308",
    "low": "#22C55E",
}
TYPE_LABELS = {
    "bug": "Bug",
    "feature": "Feature",
    "epic": "Epic",
    "story": "Story",
}
OVERDUE_COLOR = "#B00020"
TAG_COLOR = "#CBD5E1"
WIP_WARNING_COLOR = "#DC2626"


def ideal_text_color(bg_hex: str) -> str:
    """Return black or white depending on background brightness."""
    bg_hex = bg_hex.strip().lstrip('#')
    if len(bg_hex) == 3:
        bg_hex = ''.join(c*2 for c in bg_hex)
    try:
        r = int(bg_hex[0:2], 16)
        g = int(bg_hex[2:4], 16)
        b = int(bg_hex[4:6], 16)
    except ValueError:
        return "black"
    # Perceived luminance
    luminance = 0.299*r + 0.587*g + 0.114*b
    return "black" if luminance > 186 else "white"


def card_tags(task: Task, today: Optional[dt.date] = None) -> List[Tuple[str, str]]:
    """[(label, hex_color)] chips shown under a task card."""
    today = today or dt.date.today()
    tags = [(task.priority.capitalize(), PRIORITY_COLORS.get(task.priority, "#6B7280"))]
    if task.type in TYPE_LABELS:
        tags.append((TYPE_LABELS[task.type], "#A78BFA"))
    if task.due_date:
        try:
            due = dt.date.fromisoformat(str(task.due_date)[:10])
        except ValueError:
            tags.append((str(task.due_date), TAG_COLOR))
        else:
            if due < today and task.status != "done":
                tags.append(("Overdue", OVERDUE_COLOR))
            else:
                tags.append((f"Due {due.isoformat()}", TAG_COLOR))
    for tag in task.tags[:2]:
        tags.append((tag, TAG_COLOR))
    if task.time_tracking.logged:
        tags.append((f"{task.time_tracking.logged}m", "#38BDF8"))
    return tags


def wip_warning(count: int, wip_limit: Optional[int]) -> str:
    return f"WIP limit exceeded ({count}/{wip_limit})"
