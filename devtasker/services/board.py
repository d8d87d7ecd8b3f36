"""Board projection: per-column grouping of tasks and drag-and-drop classification.

Everything here is pure except `DragSession`, which forwards committed moves to
a `move(task_id, status, position)` callable (normally `TaskStore.move`).
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from devtasker.core.models import ProjectColumn, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveIntent:
    task_id: str
    status: str
    position: float


@dataclass
class BoardColumn:
    id: str
    title: str
    color: str
    wip_limit: Optional[int]
    tasks: List[Task] = field(default_factory=list)  # shown, after filters
    task_count: int = 0                              # all tasks in the column

    @property
    def over_wip_limit(self) -> bool:
        return is_over_wip_limit(self.wip_limit, self.task_count)


def project(tasks: Sequence[Task], columns: Sequence[ProjectColumn]) -> Dict[str, List[Task]]:
    """Group tasks by column, in column order, keeping source order inside a column.

    The source list is expected to be sorted by position already; no re-sort here.
    Tasks whose status matches no column are left out (see `unfiled`).
    """
    board: Dict[str, List[Task]] = {c.id: [] for c in columns}
    for task in tasks:
        bucket = board.get(task.status)
        if bucket is not None:
            bucket.append(task)
    return board


def unfiled(tasks: Sequence[Task], columns: Sequence[ProjectColumn]) -> List[Task]:
    known = {c.id for c in columns}
    return [t for t in tasks if t.status not in known]


def is_over_wip_limit(wip_limit: Optional[int], count: int) -> bool:
    # advisory only, never blocks a move
    return bool(wip_limit) and count > wip_limit


def column_views(tasks: Sequence[Task], columns: Sequence[ProjectColumn],
                 all_tasks: Optional[Sequence[Task]] = None) -> List[BoardColumn]:
    """Columns showing `tasks`; WIP counts come from `all_tasks` when tasks is a filtered view."""
    board = project(tasks, columns)
    counts = board if all_tasks is None else project(all_tasks, columns)
    return [
        BoardColumn(id=c.id, title=c.title, color=c.color, wip_limit=c.wip_limit,
                    tasks=board[c.id], task_count=len(counts[c.id]))
        for c in columns
    ]


# ---------- positions ----------
def position_after(task: Task) -> float:
    return task.position + 1


def position_at_end(tasks: Iterable[Task]) -> float:
    positions = [t.position for t in tasks]
    return max(positions) + 1 if positions else 0


def position_between(before: Task, after: Optional[Task]) -> float:
    if after is None:
        return position_after(before)
    return (before.position + after.position) / 2


def position_before(task: Task, previous: Optional[Task]) -> float:
    if previous is None:
        return task.position - 1
    return (previous.position + task.position) / 2


def classify_drag(active_id: str, over_id: str, tasks: Sequence[Task],
                  columns: Sequence[ProjectColumn],
                  reorder_within_column: bool = False) -> Optional[MoveIntent]:
    """Turn "active dragged over `over_id`" into a MoveIntent, or None for no-op.

    over_id may name a task or a column.
    """
    if active_id == over_id:
        return None
    by_id = {t.id: t for t in tasks}
    active = by_id.get(active_id)
    if active is None:
        return None

    over_task = by_id.get(over_id)
    if over_task is not None:
        if over_task.status != active.status:
            return MoveIntent(active.id, over_task.status, position_after(over_task))
        if not reorder_within_column:
            return None
        siblings = sorted((t for t in tasks if t.status == over_task.status and t.id != active.id),
                          key=lambda t: t.position)
        idx = next(i for i, t in enumerate(siblings) if t.id == over_task.id)
        if active.position > over_task.position:
            # dragged upwards: land just above the card under the pointer
            prev = siblings[idx - 1] if idx > 0 else None
            return MoveIntent(active.id, over_task.status, position_before(over_task, prev))
        nxt = siblings[idx + 1] if idx + 1 < len(siblings) else None
        return MoveIntent(active.id, over_task.status, position_between(over_task, nxt))

    if any(c.id == over_id for c in columns) and active.status != over_id:
        in_column = [t for t in tasks if t.status == over_id]
        return MoveIntent(active.id, over_id, position_at_end(in_column))

    return None


# ---------- drag gesture ----------
IDLE = "idle"
DRAGGING = "dragging"

LIVE = "live"
DROP = "drop"


class DragSession:
    """Idle -> Dragging(active) -> [Over]* -> Ended | Cancelled.

    In LIVE mode every `over()` that classifies to a move is committed at once,
    and `end()` only clears the active task. In DROP mode the last intent is
    held and committed by `end()`. `cancel()` restores the original
    (status, position) of the dragged task.
    """

    def __init__(self, move: Callable[[str, str, float], None],
                 tasks: Callable[[], Sequence[Task]],
                 columns: Callable[[], Sequence[ProjectColumn]],
                 mode: str = LIVE, reorder_within_column: bool = False):
        if mode not in (LIVE, DROP):
            raise ValueError(f"Unknown drag commit mode: {mode}")
        self._move = move
        self._tasks = tasks
        self._columns = columns
        self.mode = mode
        self.reorder_within_column = reorder_within_column
        self.state = IDLE
        self.active: Optional[Task] = None
        self.pending: Optional[MoveIntent] = None
        self._origin = None

    def start(self, task_id: str) -> Optional[Task]:
        self.active = next((t for t in self._tasks() if t.id == task_id), None)
        if self.active is None:
            self.state = IDLE
            return None
        self.state = DRAGGING
        self.pending = None
        self._origin = (self.active.status, self.active.position)
        return self.active

    def over(self, over_id: Optional[str]) -> Optional[MoveIntent]:
        if self.state != DRAGGING or over_id is None:
            return None
        tasks = self._tasks()
        if self.mode == DROP and self.pending is not None:
            # classify against where the task would be after the held intent
            tasks = [
                replace(t, status=self.pending.status, position=self.pending.position)
                if t.id == self.active.id else t
                for t in tasks
            ]
        intent = classify_drag(self.active.id, over_id, tasks, self._columns(),
                               self.reorder_within_column)
        if intent is None:
            return None
        if self.mode == LIVE:
            logger.debug("Live move %s -> %s@%s", intent.task_id, intent.status, intent.position)
            self._move(intent.task_id, intent.status, intent.position)
        else:
            self.pending = intent
        return intent

    def end(self) -> Optional[MoveIntent]:
        committed = None
        if self.state == DRAGGING and self.mode == DROP and self.pending is not None:
            committed = self.pending
            self._move(committed.task_id, committed.status, committed.position)
        self._reset()
        return committed

    def cancel(self):
        if self.state == DRAGGING and self.mode == LIVE and self.active is not None:
            current = next((t for t in self._tasks() if t.id == self.active.id), None)
            status, position = self._origin
            if current is not None and (current.status, current.position) != (status, position):
                self._move(self.active.id, status, position)
        self._reset()

    def _reset(self):
        self.state = IDLE
        self.active = None
        self.pending = None
        self._origin = None
