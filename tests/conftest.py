"""Shared fixtures: an in-memory stand-in for the PocketBase collaborator."""

import itertools

import pytest

from devtasker.core.exceptions import NotFoundError, UnauthorizedError, UnavailableError
from devtasker.core.models import ProjectColumn, Task, default_columns


class FakePocketBase:
    """Implements the PocketBaseClient surface the stores use, backed by dicts."""

    def __init__(self):
        self.collections = {}
        self.fail = False
        self.fail_on = set()  # actions such as "update tasks" that fail
        self.calls = []
        self.token = ""
        self.user_id = ""
        self.users = {}  # email -> password
        self._ids = itertools.count(1)

    def _check(self, action):
        self.calls.append(action)
        if self.fail or action in self.fail_on:
            raise UnavailableError(f"{action} failed: backend down")

    def _coll(self, name):
        return self.collections.setdefault(name, {})

    def _value(self, rec, key):
        # "task.project" follows the task relation into the tasks collection
        if "." in key:
            relation, attr = key.split(".", 1)
            related = self._coll(relation + "s").get(rec.get(relation)) or {}
            return related.get(attr)
        return rec.get(key)

    def seed(self, collection, **rec):
        rec.setdefault("id", f"{collection[:1]}{next(self._ids)}")
        rec.setdefault("created", f"{next(self._ids):06d}")
        self._coll(collection)[rec["id"]] = dict(rec)
        return rec["id"]

    # ---- identity ----
    def login(self, identity, password):
        self._check("login")
        if self.users.get(identity) != password:
            raise UnauthorizedError("Login failed: 400 invalid credentials", 400)
        self.user_id = next(r["id"] for r in self._coll("users").values() if r["email"] == identity)
        self.token = "tok"
        return True

    def register(self, email, password, name=""):
        self._check("register")
        self.users[email] = password
        rid = self.seed("users", email=email, name=name)
        return self._coll("users")[rid]

    def refresh(self):
        self._check("refresh")
        return True

    def logout(self):
        self.token = ""
        self.user_id = ""

    # ---- records ----
    def query(self, collection, filters=None, sort=None):
        self._check(f"query {collection}")
        items = [dict(r) for r in self._coll(collection).values()
                 if all(self._value(r, k) == v for k, v in (filters or {}).items())]
        for key in reversed((sort or "").split(",") if sort else []):
            desc = key.startswith("-")
            key = key.lstrip("-")
            items.sort(key=lambda r: r.get(key) or 0, reverse=desc)
        return items

    def get(self, collection, record_id):
        self._check(f"get {collection}")
        rec = self._coll(collection).get(record_id)
        return dict(rec) if rec else None

    def add(self, collection, doc):
        self._check(f"add {collection}")
        return self.seed(collection, **doc)

    def update(self, collection, record_id, partial):
        self._check(f"update {collection}")
        rec = self._coll(collection).get(record_id)
        if rec is None:
            raise NotFoundError(f"Update {collection}/{record_id} failed: 404", 404)
        rec.update(partial)
        return dict(rec)

    def delete(self, collection, record_id):
        self._check(f"delete {collection}")
        if self._coll(collection).pop(record_id, None) is None:
            raise NotFoundError(f"Delete {collection}/{record_id} failed: 404", 404)

    def batch_delete(self, deletes):
        self._check("batch")
        for collection, record_id in deletes:
            self._coll(collection).pop(record_id, None)


@pytest.fixture
def pb():
    return FakePocketBase()


@pytest.fixture
def columns():
    return default_columns()


def make_task(task_id, status, position, project_id="p1", **kwargs):
    return Task(id=task_id, title=f"Task {task_id}", project_id=project_id,
                status=status, position=position, **kwargs)


@pytest.fixture
def task_factory():
    return make_task


@pytest.fixture
def review_columns():
    return [
        ProjectColumn("todo", "To Do", 0),
        ProjectColumn("in-progress", "In Progress", 1),
        ProjectColumn("review", "Review", 2, wip_limit=2),
        ProjectColumn("done", "Done", 3),
    ]
