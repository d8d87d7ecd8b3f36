import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from devtasker.core.models import Task


@dataclass
class TaskFilters:
    status: List[str] = field(default_factory=list)
    assignee: List[str] = field(default_factory=list)
    priority: List[str] = field(default_factory=list)
    type: List[str] = field(default_factory=list)
    sprint: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    date_range: Optional[Tuple[dt.date, dt.date]] = None  # inclusive, on due_date

    @property
    def empty(self) -> bool:
        return not (self.status or self.assignee or self.priority or self.type
                    or self.sprint or self.tags or self.date_range)


def _due(task: Task) -> Optional[dt.date]:
    if not task.due_date:
        return None
    try:
        return dt.date.fromisoformat(str(task.due_date)[:10])
    except ValueError:
        return None


def matches(task: Task, filters: TaskFilters) -> bool:
    if filters.status and task.status not in filters.status:
        return False
    if filters.assignee and task.assignee_id not in filters.assignee:
        return False
    if filters.priority and task.priority not in filters.priority:
        return False
    if filters.type and task.type not in filters.type:
        return False
    if filters.sprint and task.sprint_id != filters.sprint:
        return False
    if filters.tags and not set(filters.tags) & set(task.tags):
        return False
    if filters.date_range:
        due = _due(task)
        start, end = filters.date_range
        if due is None or not (start <= due <= end):
            return False
    return True


def apply_filters(tasks: Sequence[Task], filters: Optional[TaskFilters]) -> List[Task]:
    if filters is None or filters.empty:
        return list(tasks)
    return [t for t in tasks if matches(t, filters)]
