# Creates/updates the devtasker collections in PocketBase using the superuser API.
# Run with:  devtasker-bootstrap   (reads PB_BASE_URL, PB_ADMIN_EMAIL, PB_ADMIN_PASSWORD)

import logging
import sys
from typing import Any, Dict, List, Optional

import requests

from devtasker.core import config
from devtasker.core.exceptions import PBError
from devtasker.storage.pocketbase import _error_for

logger = logging.getLogger(__name__)

OWNER_RULE = "@request.auth.id != ''"


class PBAdmin:
    def __init__(self, base: str, timeout: float = config.REQUEST_TIMEOUT):
        self.base = base.rstrip('/')
        self.timeout = timeout
        self.s = requests.Session()

    def _check(self, r: requests.Response, action: str) -> Dict[str, Any]:
        if not r.ok:
            raise _error_for(r, action)
        return r.json() if r.content else {}

    def admin_login(self, email: str, password: str):
        r = self.s.post(f"{self.base}/api/collections/_superusers/auth-with-password", json={
            "identity": email,
            "password": password
        }, timeout=self.timeout)
        tok = self._check(r, "Admin login").get("token")
        if not tok:
            raise PBError("Admin login: token missing")
        self.s.headers.update({"Authorization": f"Bearer {tok}"})
        logger.info("Admin login OK")

    def get_collection(self, name_or_id: str) -> Optional[Dict[str, Any]]:
        r = self.s.get(f"{self.base}/api/collections/{name_or_id}", timeout=self.timeout)
        if r.status_code == 404:
            return None
        return self._check(r, f"Get collection {name_or_id}")

    def create_collection(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self.s.post(f"{self.base}/api/collections", json=payload, timeout=self.timeout)
        return self._check(r, f"Create collection {payload.get('name')}")

    def update_collection(self, id_or_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        r = self.s.patch(f"{self.base}/api/collections/{id_or_name}", json=payload, timeout=self.timeout)
        return self._check(r, f"Update collection {id_or_name}")

    def enable_batch(self, max_requests: int = 500):
        # project deletion removes the project and its tasks in one batch
        r = self.s.patch(f"{self.base}/api/settings",
                         json={"batch": {"enabled": True, "maxRequests": max_requests}},
                         timeout=self.timeout)
        self._check(r, "Enable batch API")


def _rules(rule: str = OWNER_RULE) -> Dict[str, str]:
    return {"listRule": rule, "viewRule": rule, "createRule": rule,
            "updateRule": rule, "deleteRule": rule}


def spec_projects() -> Dict[str, Any]:
    return {
        "name": "projects",
        "type": "base",
        "fields": [
            {"name": "name", "type": "text", "required": True, "min": 1, "max": 200},
            {"name": "description", "type": "text", "max": 5000},
            {"name": "team", "type": "text", "required": True, "max": 64},
            {"name": "owner", "type": "relation", "required": True,
             "collectionId": "_pb_users_auth_", "cascadeDelete": False, "maxSelect": 1},
            {"name": "status", "type": "select", "maxSelect": 1,
             "values": ["planning", "active", "on-hold", "completed", "cancelled"]},
            {"name": "priority", "type": "select", "maxSelect": 1,
             "values": ["low", "medium", "high", "urgent"]},
            {"name": "start_date", "type": "date"},
            {"name": "end_date", "type": "date"},
            {"name": "members", "type": "json", "maxSize": 20000},
            {"name": "tags", "type": "json", "maxSize": 20000},
            {"name": "color", "type": "text", "pattern": "^#?[0-9A-Fa-f]{3,8}$"},
            {"name": "settings", "type": "json", "maxSize": 100000},
            {"name": "created", "type": "autodate", "onCreate": True, "onUpdate": False},
            {"name": "updated", "type": "autodate", "onCreate": True, "onUpdate": True},
        ],
        "indexes": [
            "CREATE INDEX idx_projects_team ON projects (team, created)"
        ],
        **_rules(),
    }


def spec_tasks(projects_id: str, tasks_id: Optional[str] = None) -> Dict[str, Any]:
    fields: List[Dict[str, Any]] = [
        {"name": "title", "type": "text", "required": True, "min": 1, "max": 200},
        {"name": "description", "type": "text", "max": 20000},
        {"name": "project", "type": "relation", "required": True,
         "collectionId": projects_id, "cascadeDelete": True, "maxSelect": 1},
        {"name": "status", "type": "text", "required": True, "max": 64},
        {"name": "position", "type": "number"},
        {"name": "priority", "type": "select", "maxSelect": 1,
         "values": ["low", "medium", "high", "urgent"]},
        {"name": "type", "type": "select", "maxSelect": 1,
         "values": ["story", "bug", "feature", "epic", "task"]},
        {"name": "assignee", "type": "text", "max": 64},
        {"name": "reporter", "type": "text", "max": 64},
        {"name": "story_points", "type": "number", "min": 0},
        {"name": "due_date", "type": "date"},
        {"name": "start_date", "type": "date"},
        {"name": "completed_date", "type": "date"},
        {"name": "sprint", "type": "text", "max": 64},
        {"name": "tags", "type": "json", "maxSize": 20000},
        {"name": "comments", "type": "json", "maxSize": 500000},
        {"name": "attachments", "type": "json", "maxSize": 500000},
        {"name": "time_tracking", "type": "json", "maxSize": 2000},
        {"name": "created", "type": "autodate", "onCreate": True, "onUpdate": False},
        {"name": "updated", "type": "autodate", "onCreate": True, "onUpdate": True},
    ]
    if tasks_id:
        fields.append({"name": "parent", "type": "relation", "collectionId": tasks_id,
                       "cascadeDelete": False, "maxSelect": 1})
    return {
        "name": "tasks",
        "type": "base",
        "fields": fields,
        "indexes": [
            "CREATE INDEX idx_tasks_project_position ON tasks (project, position, created)",
            "CREATE INDEX idx_tasks_project_status ON tasks (project, status)",
        ],
        **_rules(),
    }


def spec_time_entries(tasks_id: str) -> Dict[str, Any]:
    return {
        "name": "time_entries",
        "type": "base",
        "fields": [
            {"name": "task", "type": "relation", "required": True,
             "collectionId": tasks_id, "cascadeDelete": True, "maxSelect": 1},
            {"name": "user", "type": "relation", "required": True,
             "collectionId": "_pb_users_auth_", "cascadeDelete": True, "maxSelect": 1},
            {"name": "duration", "type": "number", "required": True, "min": 1},
            {"name": "description", "type": "text", "max": 2000},
            {"name": "date", "type": "date", "required": True},
            {"name": "billable", "type": "bool"},
        ],
        "indexes": [
            "CREATE INDEX idx_time_entries_task ON time_entries (task, date)"
        ],
        "listRule": OWNER_RULE,
        "viewRule": OWNER_RULE,
        "createRule": "user = @request.auth.id",
        "updateRule": "user = @request.auth.id",
        "deleteRule": "user = @request.auth.id",
    }


USER_EXTRA_FIELDS = [
    {"name": "role", "type": "select", "maxSelect": 1,
     "values": ["admin", "pm", "developer", "client"]},
    {"name": "team", "type": "text", "max": 64},
    {"name": "settings", "type": "json", "maxSize": 20000},
]


def upsert_collection(pb: PBAdmin, spec: Dict[str, Any]) -> Dict[str, Any]:
    existing = pb.get_collection(spec["name"])
    if not existing:
        return pb.create_collection(spec)
    cid = existing.get("id") or spec["name"]
    # keep existing field ids so PocketBase updates them instead of recreating
    known = {f["name"]: f for f in existing.get("fields", [])}
    patched = dict(spec)
    patched["fields"] = [{**f, "id": known[f["name"]]["id"]} if f["name"] in known and "id" in known[f["name"]] else f
                         for f in spec["fields"]]
    return pb.update_collection(cid, patched)


def ensure_fields(pb: PBAdmin, name: str, extra: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Append fields missing from an existing collection (the built-in users one)."""
    existing = pb.get_collection(name)
    if existing is None:
        raise PBError(f"Collection {name} not found", 404)
    have = {f["name"] for f in existing.get("fields", [])}
    missing = [f for f in extra if f["name"] not in have]
    if not missing:
        return existing
    return pb.update_collection(existing["id"], {"fields": existing.get("fields", []) + missing})


def bootstrap(pb: PBAdmin) -> Dict[str, str]:
    ids = {}
    ensure_fields(pb, "users", USER_EXTRA_FIELDS)
    ids["projects"] = upsert_collection(pb, spec_projects()).get("id")
    # tasks in two phases: the parent relation needs the tasks collection id
    ids["tasks"] = upsert_collection(pb, spec_tasks(ids["projects"])).get("id")
    upsert_collection(pb, spec_tasks(ids["projects"], tasks_id=ids["tasks"]))
    ids["time_entries"] = upsert_collection(pb, spec_time_entries(ids["tasks"])).get("id")
    pb.enable_batch()
    for name, cid in ids.items():
        logger.info("OK: %s %s", name, cid)
    return ids


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    pb = PBAdmin(config.BASE_URL)
    try:
        pb.admin_login(config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
        bootstrap(pb)
    except PBError as e:
        logger.error("Bootstrap failed: %s", e)
        sys.exit(1)
    logger.info("Bootstrap complete.")


if __name__ == "__main__":
    main()
