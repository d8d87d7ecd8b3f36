from devtasker.core.models import (
    DEFAULT_COLUMNS, Project, ProjectColumn, Task, TimeTracking, User, default_columns,
)


def test_task_from_record_maps_relations():
    task = Task.from_record({
        "id": "t1", "title": "Fix", "project": "p1", "assignee": "u2", "reporter": "u1",
        "status": "review", "position": 12, "created": "2026-10-01 10:00:00.000Z",
        "time_tracking": {"estimated": 60, "logged": 15},
    })
    assert task.project_id == "p1"
    assert (task.assignee_id, task.reporter_id) == ("u2", "u1")
    assert task.position == 12.0
    assert task.created_at.startswith("2026-10-01")
    assert task.time_tracking == TimeTracking(60, 15, 0)


def test_task_from_sparse_record_uses_defaults():
    task = Task.from_record({"id": "t1"})
    assert (task.status, task.priority, task.type) == ("backlog", "medium", "task")
    assert task.tags == [] and task.assignee_id is None


def test_task_to_record_drops_identity_and_timestamps():
    rec = Task("t1", "Fix", "p1", status="todo", position=3, sprint_id="s1",
               created_at="x", updated_at="y").to_record()
    assert "id" not in rec and "created_at" not in rec and "updated_at" not in rec
    assert rec["project"] == "p1"
    assert rec["sprint"] == "s1"
    assert rec["time_tracking"] == {"estimated": 0, "logged": 0, "remaining": 0}


def test_project_without_settings_gets_default_columns():
    project = Project.from_record({"id": "p1", "name": "A", "team": "t", "owner": "u"})
    assert [c.id for c in project.columns] == [c.id for c in DEFAULT_COLUMNS]
    assert (project.team_id, project.owner_id) == ("t", "u")


def test_project_columns_round_trip_through_settings():
    project = Project("p1", "A")
    project.settings.columns.append(ProjectColumn("qa", "QA", 5, "#ef4444", wip_limit=2))
    again = Project.from_record({"id": "p1", **project.to_record()})
    assert again.columns[-1] == ProjectColumn("qa", "QA", 5, "#ef4444", 2)


def test_default_columns_are_fresh_copies():
    cols = default_columns()
    cols[0].title = "Ideas"
    assert DEFAULT_COLUMNS[0].title == "Backlog"


def test_user_team_mapping():
    user = User.from_record({"id": "u1", "email": "a@b.c", "team": "t1"})
    assert user.team_id == "t1"
    assert user.role == "developer"


def test_zero_story_points_kept():
    assert Task.from_record({"id": "t1", "story_points": 0}).story_points == 0
    assert Task.from_record({"id": "t1"}).story_points is None
