import datetime as dt
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from devtasker.core.models import Project, Task, TimeEntry

DONE = "done"


@dataclass
class DashboardStats:
    total_projects: int = 0
    active_projects: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    time_logged_today: int = 0       # minutes
    time_logged_this_week: int = 0


def _as_date(value) -> Optional[dt.date]:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def is_overdue(task: Task, today: dt.date) -> bool:
    due = _as_date(task.due_date)
    return due is not None and due < today and task.status != DONE


def dashboard_stats(projects: Sequence[Project], tasks: Sequence[Task],
                    time_entries: Iterable[TimeEntry] = (),
                    today: Optional[dt.date] = None) -> DashboardStats:
    today = today or dt.date.today()
    week_start = today - dt.timedelta(days=today.weekday())
    stats = DashboardStats(
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.status == "active"),
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.status == DONE),
        overdue_tasks=sum(1 for t in tasks if is_overdue(t, today)),
    )
    for entry in time_entries:
        day = _as_date(entry.date)
        if day is None:
            continue
        if day == today:
            stats.time_logged_today += entry.duration
        if week_start <= day <= today:
            stats.time_logged_this_week += entry.duration
    return stats
