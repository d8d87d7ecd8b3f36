import logging
from typing import Any, Dict, List, Optional

from devtasker.core import config
from devtasker.core.models import Project, ProjectColumn, Task
from devtasker.storage.pocketbase import PocketBaseClient
from devtasker.controller.auth_store import AuthStore
from devtasker.controller.project_store import ProjectStore
from devtasker.controller.task_store import TaskStore
from devtasker.services import board
from devtasker.services.stats import DashboardStats, dashboard_stats

logger = logging.getLogger(__name__)


class AppController:
    """Coordinates the UI with the backend (PocketBase) and the board services."""

    def __init__(self, client: PocketBaseClient, drag_mode: str = config.DRAG_COMMIT_MODE,
                 reorder_within_column: bool = config.REORDER_WITHIN_COLUMN):
        self.client = client
        self.auth = AuthStore(client)
        self.projects = ProjectStore(client)
        self.tasks = TaskStore(client)
        self.drag = board.DragSession(
            move=self.tasks.move,
            tasks=lambda: self.tasks.tasks,
            columns=self.columns,
            mode=drag_mode,
            reorder_within_column=reorder_within_column,
        )

    # ---- session ----
    def sign_out(self):
        self.drag.cancel()
        self.auth.sign_out()
        self.tasks.reset()
        self.projects.reset()

    def team_id(self) -> str:
        user = self.auth.user
        if user is None:
            return ""
        return user.team_id or user.id

    # ---- projects ----
    def load_projects(self) -> List[Project]:
        self.projects.fetch_projects(self.team_id())
        if not self.projects.projects and self.projects.error is None and self.auth.user:
            self.projects.create_project({"name": "My Project"}, self.team_id(), self.auth.user.id)
        return self.projects.projects

    def open_project(self, project_id: str) -> Optional[Project]:
        self.projects.fetch_project(project_id)
        project = self.projects.current_project
        if project is None or project.id != project_id:
            return None
        self.tasks.load(project_id)
        return project

    def columns(self) -> List[ProjectColumn]:
        project = self.projects.current_project
        return project.columns if project else []

    def remove_column(self, column_id: str, reassign_to: Optional[str] = None):
        self.projects.remove_column(column_id, self.tasks.tasks, self.tasks.move, reassign_to)

    # ---- tasks ----
    def add_task(self, title: str, **fields) -> Task:
        project = self.projects.current_project
        author = self.auth.user.id if self.auth.user else self.client.user_id
        return self.tasks.create({"title": title, **fields}, project.id, author)

    def log_time(self, task_id: str, minutes: int, description: str = "", billable: bool = False):
        user_id = self.auth.user.id if self.auth.user else self.client.user_id
        return self.tasks.log_time(task_id, minutes, user_id, description, billable)

    # ---- board ----
    def board_columns(self) -> List[board.BoardColumn]:
        return board.column_views(self.tasks.visible_tasks(), self.columns(), all_tasks=self.tasks.tasks)

    def unfiled(self) -> List[Task]:
        return board.unfiled(self.tasks.tasks, self.columns())

    def stats(self) -> DashboardStats:
        return dashboard_stats(self.projects.projects, self.tasks.tasks, self.tasks.entries)

    def summary(self) -> Dict[str, Any]:
        cols = self.board_columns()
        return {
            "project": self.projects.current_project.name if self.projects.current_project else None,
            "columns": {c.id: len(c.tasks) for c in cols},
            "over_wip_limit": [c.id for c in cols if c.over_wip_limit],
            "unfiled": len(self.unfiled()),
        }
