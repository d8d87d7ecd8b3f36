import datetime as dt
import logging
import time
from dataclasses import fields as dataclass_fields, replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from devtasker.core.exceptions import NotFoundError, PBError
from devtasker.core.models import Task, TimeEntry, TimeTracking, TASK_FIELDS, to_record_fields
from devtasker.controller.observable import Observable
from devtasker.services.filters import TaskFilters, apply_filters

logger = logging.getLogger(__name__)

TASKS = "tasks"
TIME_ENTRIES = "time_entries"

TASK_ATTRS = {f.name for f in dataclass_fields(Task)}


def now_ms() -> int:
    return int(time.time() * 1000)


def unknown_task_fields(keys: Iterable[str]) -> List[str]:
    return sorted(k for k in keys if k not in TASK_ATTRS)


class TaskStore(Observable):
    """Task list of the open project, written through to the backend.

    Reads record failures in `error` and return quietly; `create` and
    `log_time` record and re-raise so the caller can react.
    """

    def __init__(self, client, clock: Callable[[], int] = now_ms):
        super().__init__()
        self.client = client
        self.clock = clock
        self.project_id: Optional[str] = None
        self.tasks: List[Task] = []
        self.entries: List[TimeEntry] = []
        self.filters = TaskFilters()

    def get(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def _replace(self, task_id: str, **fields) -> Optional[Task]:
        updated = None
        tasks = []
        for t in self.tasks:
            if t.id == task_id:
                t = updated = replace(t, **fields)
            tasks.append(t)
        self.tasks = tasks
        return updated

    # ---- reads ----
    def load(self, project_id: str):
        """Tasks of a project sorted by position, plus the time logged on them."""
        self._begin()
        try:
            records = self.client.query(TASKS, {"project": project_id}, sort="position,created")
            tasks = [Task.from_record(r) for r in records]
            entries = [TimeEntry.from_record(r)
                       for r in self.client.query(TIME_ENTRIES, {"task.project": project_id})]
        except PBError as e:
            logger.error("Loading tasks of %s failed: %s", project_id, e)
            self._fail(e)
            return
        self.project_id = project_id
        self.tasks = tasks
        self.entries = entries
        logger.info("Loaded %d task(s) for project %s", len(tasks), project_id)
        self._done()

    def visible_tasks(self) -> List[Task]:
        return apply_filters(self.tasks, self.filters)

    def set_filters(self, filters: TaskFilters):
        self.filters = filters
        self._notify()

    def clear_filters(self):
        self.filters = TaskFilters()
        self._notify()

    # ---- writes ----
    def _new_position(self, status: str) -> int:
        # timestamps only collide for tasks created within the same millisecond
        position = self.clock()
        taken = {t.position for t in self.tasks if t.status == status}
        while position in taken:
            position += 1
        return position

    def create(self, task_data: Dict[str, Any], project_id: str, author_id: str) -> Task:
        unknown = unknown_task_fields(task_data)
        if unknown:
            self.set_error(f"Unknown task field(s): {', '.join(unknown)}")
            raise ValueError(self.error)
        self._begin()
        try:
            task = Task(
                id="",
                project_id=project_id,
                reporter_id=author_id,
                status="backlog",
                position=self._new_position("backlog"),
                time_tracking=TimeTracking(),
                **{k: v for k, v in task_data.items()
                   if k not in ("id", "project_id", "reporter_id", "status", "position", "time_tracking")},
            )
            now = dt.datetime.now(dt.timezone.utc).isoformat()
            task.created_at = task.updated_at = now
            task.id = self.client.add(TASKS, task.to_record())
        except PBError as e:
            logger.error("Creating task failed: %s", e)
            self._fail(e)
            raise
        self.tasks = self.tasks + [task]
        logger.info("Created task %s at position %s", task.id, task.position)
        self._done()
        return task

    def update(self, task_id: str, **fields):
        unknown = unknown_task_fields(fields)
        if unknown:
            logger.error("Updating task %s rejected, unknown field(s): %s", task_id, unknown)
            self.set_error(f"Unknown task field(s): {', '.join(unknown)}")
            return
        self._begin()
        try:
            self.client.update(TASKS, task_id, to_record_fields(fields, TASK_FIELDS))
        except PBError as e:
            logger.error("Updating task %s failed: %s", task_id, e)
            self._fail(e)
            return
        self._replace(task_id, updated_at=dt.datetime.now(dt.timezone.utc).isoformat(), **fields)
        self._done()

    def remove(self, task_id: str):
        self._begin()
        try:
            self.client.delete(TASKS, task_id)
        except PBError as e:
            logger.error("Deleting task %s failed: %s", task_id, e)
            self._fail(e)
            return
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._done()

    def move(self, task_id: str, new_status: str, new_position: float) -> bool:
        """Write the new (status, position). Returns False when the write failed."""
        try:
            self.client.update(TASKS, task_id, {"status": new_status, "position": new_position})
        except PBError as e:
            logger.error("Moving task %s failed: %s", task_id, e)
            self.set_error(str(e))
            return False
        self._replace(task_id, status=new_status, position=new_position,
                      updated_at=dt.datetime.now(dt.timezone.utc).isoformat())
        logger.debug("Moved %s to %s@%s", task_id, new_status, new_position)
        self._notify()
        return True

    def renumber(self, status: str) -> int:
        """Rewrite positions of a column to 0..n-1 in current order. Returns writes made."""
        writes = 0
        for index, task in enumerate([t for t in self.tasks if t.status == status]):
            if task.position == index:
                continue
            try:
                self.client.update(TASKS, task.id, {"position": index})
            except PBError as e:
                logger.error("Renumbering %s stopped at %s: %s", status, task.id, e)
                self.set_error(str(e))
                return writes
            self._replace(task.id, position=index)
            writes += 1
        if writes:
            self._notify()
        return writes

    def log_time(self, task_id: str, minutes: int, user_id: str, description: str = "",
                 billable: bool = False, date: Optional[str] = None) -> TimeEntry:
        task = self.get(task_id)
        try:
            if task is None:
                raise NotFoundError(f"Task {task_id} not found")
            if minutes <= 0:
                raise ValueError("Logged time must be positive")
            entry = TimeEntry(id="", task_id=task_id, user_id=user_id, duration=minutes,
                              date=date or dt.date.today().isoformat(),
                              description=description or None, billable=billable)
            entry.id = self.client.add(TIME_ENTRIES, entry.to_record())
            tracking = replace(task.time_tracking,
                               logged=task.time_tracking.logged + minutes,
                               remaining=max(0, task.time_tracking.remaining - minutes))
            try:
                self.client.update(TASKS, task_id, {"time_tracking": tracking.to_record()})
            except PBError:
                # the entry must not outlive a failed tracking update
                self.client.delete(TIME_ENTRIES, entry.id)
                raise
        except (PBError, ValueError) as e:
            logger.error("Logging time on %s failed: %s", task_id, e)
            self.set_error(str(e))
            raise
        self._replace(task_id, time_tracking=tracking)
        self.entries = self.entries + [entry]
        self._notify()
        return entry

    def time_entries(self, task_id: str) -> List[TimeEntry]:
        try:
            records = self.client.query(TIME_ENTRIES, {"task": task_id}, sort="-date")
        except PBError as e:
            logger.error("Loading time entries of %s failed: %s", task_id, e)
            self.set_error(str(e))
            return []
        return [TimeEntry.from_record(r) for r in records]

    def reset(self):
        self.project_id = None
        self.tasks = []
        self.entries = []
        self.filters = TaskFilters()
        self.error = None
        self.loading = False
        self._notify()
