from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


# Python attribute -> PocketBase field, where they differ
TASK_FIELDS = {
    "project_id": "project",
    "assignee_id": "assignee",
    "reporter_id": "reporter",
    "parent_id": "parent",
    "sprint_id": "sprint",
}
PROJECT_FIELDS = {
    "team_id": "team",
    "owner_id": "owner",
}
USER_FIELDS = {
    "team_id": "team",
}


def to_record_fields(fields: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    """Rename attribute keys to their PocketBase field names and serialize nested values."""
    out = {}
    for key, value in fields.items():
        if hasattr(value, "to_record"):
            value = value.to_record()
        out[mapping.get(key, key)] = value
    return out


def _from_record(rec: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    reverse = {v: k for k, v in mapping.items()}
    return {reverse.get(k, k): v for k, v in rec.items()}


@dataclass
class TimeTracking:
    estimated: int = 0  # minutes
    logged: int = 0
    remaining: int = 0

    @classmethod
    def from_record(cls, rec: Optional[Dict[str, Any]]) -> "TimeTracking":
        rec = rec or {}
        return cls(
            estimated=int(rec.get("estimated") or 0),
            logged=int(rec.get("logged") or 0),
            remaining=int(rec.get("remaining") or 0),
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProjectColumn:
    id: str
    title: str
    position: int = 0
    color: str = "#94a3b8"
    wip_limit: Optional[int] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "ProjectColumn":
        return cls(
            id=rec["id"],
            title=rec.get("title") or rec["id"],
            position=int(rec.get("position") or 0),
            color=rec.get("color") or "#94a3b8",
            wip_limit=rec.get("wip_limit") or None,
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_COLUMNS = [
    ProjectColumn("backlog", "Backlog", 0, "#94a3b8"),
    ProjectColumn("todo", "To Do", 1, "#3b82f6"),
    ProjectColumn("in-progress", "In Progress", 2, "#f59e0b"),
    ProjectColumn("review", "Review", 3, "#8b5cf6"),
    ProjectColumn("done", "Done", 4, "#10b981"),
]


def default_columns() -> List[ProjectColumn]:
    return [ProjectColumn(**asdict(c)) for c in DEFAULT_COLUMNS]


@dataclass
class ProjectSettings:
    columns: List[ProjectColumn] = field(default_factory=default_columns)
    is_public: bool = False
    allow_client_access: bool = False

    @classmethod
    def from_record(cls, rec: Optional[Dict[str, Any]]) -> "ProjectSettings":
        rec = rec or {}
        cols = rec.get("columns")
        return cls(
            columns=[ProjectColumn.from_record(c) for c in cols] if cols else default_columns(),
            is_public=bool(rec.get("is_public")),
            allow_client_access=bool(rec.get("allow_client_access")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "columns": [c.to_record() for c in self.columns],
            "is_public": self.is_public,
            "allow_client_access": self.allow_client_access,
        }


@dataclass
class Project:
    id: str
    name: str
    team_id: str = ""
    owner_id: str = ""
    description: Optional[str] = None
    status: str = "planning"   # planning | active | on-hold | completed | cancelled
    priority: str = "medium"   # low | medium | high | urgent
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    members: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    color: str = "#3b82f6"
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def columns(self) -> List[ProjectColumn]:
        return self.settings.columns

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Project":
        data = _from_record(rec, PROJECT_FIELDS)
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            team_id=data.get("team_id") or "",
            owner_id=data.get("owner_id") or "",
            description=data.get("description") or None,
            status=data.get("status") or "planning",
            priority=data.get("priority") or "medium",
            start_date=data.get("start_date") or None,
            end_date=data.get("end_date") or None,
            members=list(data.get("members") or []),
            tags=list(data.get("tags") or []),
            color=data.get("color") or "#3b82f6",
            settings=ProjectSettings.from_record(data.get("settings")),
            created_at=data.get("created") or None,
            updated_at=data.get("updated") or None,
        )

    def to_record(self) -> Dict[str, Any]:
        rec = {
            "name": self.name,
            "description": self.description,
            "team_id": self.team_id,
            "owner_id": self.owner_id,
            "status": self.status,
            "priority": self.priority,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "members": self.members,
            "tags": self.tags,
            "color": self.color,
            "settings": self.settings,
        }
        return to_record_fields(rec, PROJECT_FIELDS)


@dataclass
class Task:
    id: str
    title: str
    project_id: str
    status: str = "backlog"    # column id
    position: float = 0.0
    description: Optional[str] = None
    priority: str = "medium"   # low | medium | high | urgent
    type: str = "task"         # story | bug | feature | epic | task
    assignee_id: Optional[str] = None
    reporter_id: Optional[str] = None
    story_points: Optional[int] = None
    due_date: Optional[str] = None    # YYYY-MM-DD
    start_date: Optional[str] = None
    completed_date: Optional[str] = None
    parent_id: Optional[str] = None   # subtasks
    sprint_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    comments: List[Dict[str, Any]] = field(default_factory=list)
    attachments: List[Dict[str, Any]] = field(default_factory=list)
    time_tracking: TimeTracking = field(default_factory=TimeTracking)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Task":
        data = _from_record(rec, TASK_FIELDS)
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            project_id=data.get("project_id") or "",
            status=data.get("status") or "backlog",
            position=float(data.get("position") or 0),
            description=data.get("description") or None,
            priority=data.get("priority") or "medium",
            type=data.get("type") or "task",
            assignee_id=data.get("assignee_id") or None,
            reporter_id=data.get("reporter_id") or None,
            story_points=data.get("story_points"),
            due_date=data.get("due_date") or None,
            start_date=data.get("start_date") or None,
            completed_date=data.get("completed_date") or None,
            parent_id=data.get("parent_id") or None,
            sprint_id=data.get("sprint_id") or None,
            tags=list(data.get("tags") or []),
            comments=list(data.get("comments") or []),
            attachments=list(data.get("attachments") or []),
            time_tracking=TimeTracking.from_record(data.get("time_tracking")),
            created_at=data.get("created") or None,
            updated_at=data.get("updated") or None,
        )

    def to_record(self) -> Dict[str, Any]:
        rec = asdict(self)
        for key in ("id", "created_at", "updated_at"):
            rec.pop(key)
        rec["time_tracking"] = self.time_tracking
        return to_record_fields(rec, TASK_FIELDS)


@dataclass
class TimeEntry:
    id: str
    task_id: str
    user_id: str
    duration: int              # minutes
    date: str                  # YYYY-MM-DD
    description: Optional[str] = None
    billable: bool = False

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "TimeEntry":
        return cls(
            id=rec["id"],
            task_id=rec.get("task") or "",
            user_id=rec.get("user") or "",
            duration=int(rec.get("duration") or 0),
            date=str(rec.get("date") or "")[:10],
            description=rec.get("description") or None,
            billable=bool(rec.get("billable")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "task": self.task_id,
            "user": self.user_id,
            "duration": self.duration,
            "date": self.date,
            "description": self.description,
            "billable": self.billable,
        }


@dataclass
class User:
    id: str
    email: str
    name: str = ""
    role: str = "developer"    # admin | pm | developer | client
    team_id: Optional[str] = None
    avatar: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "User":
        data = _from_record(rec, USER_FIELDS)
        return cls(
            id=data["id"],
            email=data.get("email") or "",
            name=data.get("name") or "",
            role=data.get("role") or "developer",
            team_id=data.get("team_id") or None,
            avatar=data.get("avatar") or None,
            settings=dict(data.get("settings") or {}),
        )
