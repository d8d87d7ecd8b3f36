from unittest.mock import MagicMock

import pytest

from devtasker.core.exceptions import PBError
from devtasker.storage.bootstrap import (
    USER_EXTRA_FIELDS, bootstrap, ensure_fields, spec_projects, spec_tasks, upsert_collection,
)


def _field_names(spec):
    return [f["name"] for f in spec["fields"]]


def test_task_collection_has_position_and_project():
    spec = spec_tasks("PROJ")
    names = _field_names(spec)
    assert "position" in names and "status" in names
    project = next(f for f in spec["fields"] if f["name"] == "project")
    assert project["collectionId"] == "PROJ"
    assert "parent" not in names
    assert "parent" in _field_names(spec_tasks("PROJ", tasks_id="TASKS"))


def test_upsert_creates_missing_collection():
    pb = MagicMock()
    pb.get_collection.return_value = None
    pb.create_collection.return_value = {"id": "c1"}
    assert upsert_collection(pb, spec_projects()) == {"id": "c1"}
    pb.update_collection.assert_not_called()


def test_upsert_keeps_existing_field_ids():
    pb = MagicMock()
    pb.get_collection.return_value = {"id": "c1", "fields": [{"id": "f_name", "name": "name"}]}
    upsert_collection(pb, spec_projects())

    cid, payload = pb.update_collection.call_args.args
    assert cid == "c1"
    name_field = next(f for f in payload["fields"] if f["name"] == "name")
    assert name_field["id"] == "f_name"
    color_field = next(f for f in payload["fields"] if f["name"] == "color")
    assert "id" not in color_field


def test_ensure_fields_appends_only_missing():
    pb = MagicMock()
    pb.get_collection.return_value = {"id": "users", "fields": [{"name": "email"}, {"name": "role"}]}
    ensure_fields(pb, "users", USER_EXTRA_FIELDS)
    _, payload = pb.update_collection.call_args.args
    assert [f["name"] for f in payload["fields"]] == ["email", "role", "team", "settings"]


def test_ensure_fields_missing_collection():
    pb = MagicMock()
    pb.get_collection.return_value = None
    with pytest.raises(PBError):
        ensure_fields(pb, "users", USER_EXTRA_FIELDS)


def test_bootstrap_wires_collection_ids():
    pb = MagicMock()
    pb.get_collection.side_effect = lambda name: {"id": name, "fields": []}
    pb.update_collection.side_effect = lambda cid, payload: {"id": f"id_{payload.get('name', cid)}"}

    ids = bootstrap(pb)

    assert ids == {"projects": "id_projects", "tasks": "id_tasks", "time_entries": "id_time_entries"}
    pb.enable_batch.assert_called_once()
