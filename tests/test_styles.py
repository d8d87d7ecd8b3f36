import datetime as dt

from devtasker.gui.styles import OVERDUE_COLOR, card_tags, ideal_text_color


def test_ideal_text_color():
    assert ideal_text_color("#ffffff") == "black"
    assert ideal_text_color("#000") == "white"
    assert ideal_text_color("not-a-color") == "black"


def test_card_tags_mark_overdue(task_factory):
    task = task_factory("a", "todo", 1, priority="urgent", type="bug",
                        due_date="2026-01-01", tags=["api", "db", "extra"])
    labels = [label for label, _ in card_tags(task, today=dt.date(2026, 10, 18))]
    assert labels == ["Urgent", "Bug", "Overdue", "api", "db"]
    assert ("Overdue", OVERDUE_COLOR) in card_tags(task, today=dt.date(2026, 10, 18))


def test_card_tags_done_task_shows_due_date(task_factory):
    task = task_factory("a", "done", 1, due_date="2026-01-01")
    labels = [label for label, _ in card_tags(task, today=dt.date(2026, 10, 18))]
    assert "Due 2026-01-01" in labels
