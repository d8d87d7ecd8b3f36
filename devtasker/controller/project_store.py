import datetime as dt
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from devtasker.core.exceptions import ColumnInUseError, NotFoundError, PBError
from devtasker.core.models import (
    Project, ProjectColumn, ProjectSettings, Task, PROJECT_FIELDS, default_columns, to_record_fields,
)
from devtasker.controller.observable import Observable

logger = logging.getLogger(__name__)

PROJECTS = "projects"
TASKS = "tasks"


class ProjectStore(Observable):
    """Projects of the signed-in team and the currently open one."""

    def __init__(self, client):
        super().__init__()
        self.client = client
        self.projects: List[Project] = []
        self.current_project: Optional[Project] = None

    def set_current_project(self, project: Optional[Project]):
        self.current_project = project
        self._notify()

    # ---- reads ----
    def fetch_projects(self, team_id: str):
        self._begin()
        try:
            records = self.client.query(PROJECTS, {"team": team_id}, sort="-created")
        except PBError as e:
            logger.error("Loading projects of team %s failed: %s", team_id, e)
            self._fail(e)
            return
        self.projects = [Project.from_record(r) for r in records]
        self._done()

    def fetch_project(self, project_id: str):
        self._begin()
        try:
            rec = self.client.get(PROJECTS, project_id)
            if rec is None:
                raise NotFoundError("Project not found", 404)
        except PBError as e:
            logger.error("Loading project %s failed: %s", project_id, e)
            self._fail(e)
            return
        self.current_project = Project.from_record(rec)
        self._done()

    # ---- writes ----
    def create_project(self, data: Dict[str, Any], team_id: str, user_id: str) -> Project:
        self._begin()
        members = [user_id] + [m for m in data.get("members", []) if m != user_id]
        try:
            project = Project(
                id="",
                name=data["name"],
                team_id=team_id,
                owner_id=user_id,
                description=data.get("description"),
                start_date=data.get("start_date"),
                end_date=data.get("end_date"),
                members=members,
                tags=list(data.get("tags", [])),
                color=data.get("color", "#3b82f6"),
                settings=ProjectSettings(
                    columns=default_columns(),
                    is_public=bool(data.get("is_public")),
                    allow_client_access=bool(data.get("allow_client_access")),
                ),
            )
            project.id = self.client.add(PROJECTS, project.to_record())
        except PBError as e:
            logger.error("Creating project failed: %s", e)
            self._fail(e)
            raise
        project.created_at = project.updated_at = dt.datetime.now(dt.timezone.utc).isoformat()
        self.projects = [project] + self.projects
        logger.info("Created project %s (%s)", project.id, project.name)
        self._done()
        return project

    def update_project(self, project_id: str, **fields):
        self._begin()
        try:
            self.client.update(PROJECTS, project_id, to_record_fields(fields, PROJECT_FIELDS))
        except PBError as e:
            logger.error("Updating project %s failed: %s", project_id, e)
            self._fail(e)
            return
        fields["updated_at"] = dt.datetime.now(dt.timezone.utc).isoformat()
        self.projects = [replace(p, **fields) if p.id == project_id else p for p in self.projects]
        if self.current_project and self.current_project.id == project_id:
            self.current_project = replace(self.current_project, **fields)
        self._done()

    def delete_project(self, project_id: str):
        """Delete the project and every task in it in one batch."""
        self._begin()
        try:
            tasks = self.client.query(TASKS, {"project": project_id})
            deletes = [(PROJECTS, project_id)] + [(TASKS, t["id"]) for t in tasks]
            self.client.batch_delete(deletes)
        except PBError as e:
            logger.error("Deleting project %s failed: %s", project_id, e)
            self._fail(e)
            return
        logger.info("Deleted project %s with %d task(s)", project_id, len(tasks))
        self.projects = [p for p in self.projects if p.id != project_id]
        if self.current_project and self.current_project.id == project_id:
            self.current_project = None
        self._done()

    # ---- columns ----
    def _save_columns(self, project: Project, columns: List[ProjectColumn]):
        settings = replace(project.settings, columns=columns)
        self.update_project(project.id, settings=settings)

    def add_column(self, column: ProjectColumn):
        project = self.current_project
        if project is None:
            raise NotFoundError("No project open")
        if any(c.id == column.id for c in project.columns):
            raise ValueError(f"Column '{column.id}' already exists")
        column = replace(column, position=len(project.columns))
        self._save_columns(project, project.columns + [column])

    def remove_column(self, column_id: str, tasks: Sequence[Task], move_task=None,
                      reassign_to: Optional[str] = None):
        """Remove a column, refusing while tasks still point at it.

        With `reassign_to`, those tasks are first moved to the end of that
        column through `move_task(task_id, status, position)`, which returns
        whether the write succeeded. The column stays if any move failed.
        """
        project = self.current_project
        if project is None:
            raise NotFoundError("No project open")
        stranded = [t for t in tasks if t.status == column_id]
        if stranded:
            if reassign_to is None or move_task is None:
                raise ColumnInUseError(column_id, len(stranded))
            if reassign_to == column_id or not any(c.id == reassign_to for c in project.columns):
                raise ValueError(f"Cannot reassign to column '{reassign_to}'")
            end = max((t.position for t in tasks if t.status == reassign_to), default=-1) + 1
            failed = [task for offset, task in enumerate(stranded)
                      if not move_task(task.id, reassign_to, end + offset)]
            if failed:
                logger.error("Column %s kept: %d task(s) could not be moved to %s",
                             column_id, len(failed), reassign_to)
                raise ColumnInUseError(column_id, len(failed))
        remaining = [c for c in project.columns if c.id != column_id]
        remaining = [replace(c, position=i) for i, c in enumerate(remaining)]
        self._save_columns(project, remaining)

    def reset(self):
        self.projects = []
        self.current_project = None
        self.error = None
        self.loading = False
        self._notify()
