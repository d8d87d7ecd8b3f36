"""
Tests for TaskStore: write-through task list of the open project.
"""
import pytest

from devtasker.controller.task_store import TaskStore
from devtasker.core.exceptions import NotFoundError, UnavailableError
from devtasker.services.board import project
from devtasker.services.filters import TaskFilters


@pytest.fixture
def store(pb):
    ticks = iter(range(1_700_000_000_000, 1_700_000_001_000))
    return TaskStore(pb, clock=lambda: next(ticks))


@pytest.fixture
def seeded(pb):
    pb.seed("tasks", id="t1", title="Write tests", project="p1", status="todo", position=20)
    pb.seed("tasks", id="t2", title="Fix login", project="p1", status="in-progress", position=5)
    pb.seed("tasks", id="t3", title="Other project", project="p2", status="todo", position=1)
    return pb


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# load
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_load_scopes_and_sorts_by_position(seeded, store):
    store.load("p1")
    assert [t.id for t in store.tasks] == ["t2", "t1"]
    assert store.project_id == "p1"
    assert store.error is None
    assert store.loading is False


def test_failed_load_keeps_previous_list(seeded, store):
    store.load("p1")
    before = list(store.tasks)

    seeded.fail = True
    store.load("p2")

    assert store.tasks == before
    assert store.project_id == "p1"
    assert "backend down" in store.error
    assert store.loading is False


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# create / update / remove
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_create_assigns_backlog_and_timestamp(pb, store):
    task = store.create({"title": "New", "priority": "high", "tags": ["api"]}, "p1", "u1")

    assert task.id
    assert task.status == "backlog"
    assert task.position == 1_700_000_000_000
    assert task.reporter_id == "u1"
    assert task.comments == [] and task.attachments == []
    assert (task.time_tracking.estimated, task.time_tracking.logged, task.time_tracking.remaining) == (0, 0, 0)
    assert store.tasks[-1] is task

    rec = pb.collections["tasks"][task.id]
    assert rec["project"] == "p1"
    assert rec["reporter"] == "u1"
    assert rec["status"] == "backlog"
    assert rec["tags"] == ["api"]
    assert rec["time_tracking"] == {"estimated": 0, "logged": 0, "remaining": 0}


def test_create_positions_increase(store):
    first = store.create({"title": "one"}, "p1", "u1")
    second = store.create({"title": "two"}, "p1", "u1")
    assert second.position > first.position


def test_create_bumps_colliding_timestamp(pb):
    store = TaskStore(pb, clock=lambda: 1000)
    a = store.create({"title": "a"}, "p1", "u1")
    b = store.create({"title": "b"}, "p1", "u1")
    assert (a.position, b.position) == (1000, 1001)


def test_create_failure_records_and_raises(pb, store):
    pb.fail = True
    with pytest.raises(UnavailableError):
        store.create({"title": "New"}, "p1", "u1")
    assert store.error
    assert store.tasks == []


def test_update_merges_fields(seeded, store):
    store.load("p1")
    store.update("t1", title="Write more tests", assignee_id="u9")

    assert store.get("t1").title == "Write more tests"
    assert store.get("t1").assignee_id == "u9"
    assert seeded.collections["tasks"]["t1"]["assignee"] == "u9"


def test_create_rejects_unknown_fields_before_writing(pb, store):
    with pytest.raises(ValueError):
        store.create({"title": "New", "estimate": 3}, "p1", "u1")
    assert "estimate" in store.error
    assert store.loading is False
    assert "add tasks" not in pb.calls


def test_update_rejects_unknown_fields_before_writing(seeded, store):
    store.load("p1")
    seeded.calls.clear()
    store.update("t1", title="Renamed", colour="red")
    assert "colour" in store.error
    assert seeded.calls == []
    assert store.get("t1").title == "Write tests"


def test_update_failure_is_recorded_not_raised(seeded, store):
    store.load("p1")
    seeded.fail = True
    store.update("t1", title="nope")
    assert store.get("t1").title == "Write tests"
    assert store.error


def test_remove(seeded, store):
    store.load("p1")
    store.remove("t1")
    assert store.get("t1") is None
    assert "t1" not in seeded.collections["tasks"]


def test_remove_missing_records_not_found(seeded, store):
    store.load("p1")
    store.remove("ghost")
    assert "404" in store.error
    assert len(store.tasks) == 2


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# move / renumber
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_updates_list_and_projection(seeded, store, columns):
    store.load("p1")
    store.move("t1", "done", 3)

    moved = store.get("t1")
    assert (moved.status, moved.position) == ("done", 3)
    assert seeded.collections["tasks"]["t1"]["status"] == "done"
    assert seeded.collections["tasks"]["t1"]["position"] == 3
    assert [t.id for t in project(store.tasks, columns)["done"]] == ["t1"]


def test_move_failure_leaves_task(seeded, store):
    store.load("p1")
    seeded.fail = True
    assert store.move("t1", "done", 3) is False
    assert store.get("t1").status == "todo"
    assert store.error


def test_renumber_rewrites_changed_positions_only(pb, store):
    pb.seed("tasks", id="a", title="a", project="p1", status="todo", position=0)
    pb.seed("tasks", id="b", title="b", project="p1", status="todo", position=7)
    pb.seed("tasks", id="c", title="c", project="p1", status="todo", position=7)
    store.load("p1")
    pb.calls.clear()

    assert store.renumber("todo") == 2
    assert [t.position for t in store.tasks] == [0, 1, 2]
    assert pb.calls == ["update tasks", "update tasks"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# time tracking
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_log_time_adds_entry_and_updates_tracking(pb, store):
    pb.seed("tasks", id="t1", title="t", project="p1", status="todo", position=1,
            time_tracking={"estimated": 120, "logged": 0, "remaining": 60})
    store.load("p1")

    entry = store.log_time("t1", 90, "u1", "pairing", billable=True, date="2026-10-18")

    assert entry.id in pb.collections["time_entries"]
    tracking = store.get("t1").time_tracking
    assert (tracking.logged, tracking.remaining) == (90, 0)
    assert pb.collections["tasks"]["t1"]["time_tracking"]["logged"] == 90
    assert [e.duration for e in store.time_entries("t1")] == [90]


def test_log_time_rolls_back_entry_when_tracking_write_fails(pb, store):
    pb.seed("tasks", id="t1", title="t", project="p1", status="todo", position=1)
    store.load("p1")
    pb.fail_on.add("update tasks")

    with pytest.raises(UnavailableError):
        store.log_time("t1", 30, "u1")

    assert pb.collections.get("time_entries", {}) == {}
    assert store.get("t1").time_tracking.logged == 0
    assert store.entries == []
    assert store.error


def test_load_brings_project_time_entries(pb, store):
    pb.seed("tasks", id="t1", title="t", project="p1", status="todo", position=1)
    pb.seed("tasks", id="t9", title="t", project="p2", status="todo", position=1)
    pb.seed("time_entries", task="t1", user="u1", duration=15, date="2026-10-18")
    pb.seed("time_entries", task="t9", user="u1", duration=40, date="2026-10-18")
    store.load("p1")
    assert [e.duration for e in store.entries] == [15]


def test_log_time_unknown_task_raises(store):
    with pytest.raises(NotFoundError):
        store.log_time("ghost", 10, "u1")
    assert store.error


def test_log_time_rejects_non_positive(seeded, store):
    store.load("p1")
    with pytest.raises(ValueError):
        store.log_time("t1", 0, "u1")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# observers / filters
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_subscribers_are_notified_until_unsubscribed(seeded, store):
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append(len(s.tasks)))
    store.load("p1")
    assert seen and seen[-1] == 2

    unsubscribe()
    count = len(seen)
    store.move("t1", "done", 1)
    assert len(seen) == count


def test_filters_limit_visible_tasks(seeded, store):
    store.load("p1")
    store.set_filters(TaskFilters(status=["todo"]))
    assert [t.id for t in store.visible_tasks()] == ["t1"]
    store.clear_filters()
    assert len(store.visible_tasks()) == 2


def test_reset_clears_state(seeded, store):
    store.load("p1")
    store.reset()
    assert store.tasks == [] and store.project_id is None and store.error is None
