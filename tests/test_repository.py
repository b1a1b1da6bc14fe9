"""Tests for pile/repository.py: add/edit/toggle orchestration."""

from zoneinfo import ZoneInfo

import pytest

from pile.dates import day_ago, day_ahead, format_key, today
from pile.errors import NotFoundError, UserCancelled, ValidationError
from pile.events import Change
from pile.models import Day, Settings, Task
from pile.store import Store
from pile.repository import Repository

from .fakes import FakePrompter


def _changes(signal):
    seen = []
    signal.subscribe(seen.append)
    return seen


def test_add_task_to_new_day(repo, store):
    task = repo.add_task("2024-01-01", "Write report")
    assert task.label == "Write report"
    assert task.parent == "2024-01-01"
    assert repo.day("2024-01-01").tasks == [task.id]
    assert repo.task(task.id) == task


def test_add_task_keeps_order(repo):
    a = repo.add_task("2024-01-01", "A")
    b = repo.add_task("2024-01-01", "B")
    c = repo.add_task("2024-01-01", "C")
    assert repo.day("2024-01-01").tasks == [a.id, b.id, c.id]


def test_add_subtask(repo):
    parent = repo.add_task("2024-01-01", "Parent")
    child = repo.add_task(parent.id, "Child")
    assert child.parent == parent.id
    assert child.is_subtask
    assert repo.task(parent.id).subtasks == [child.id]
    assert repo.day("2024-01-01").tasks == [parent.id]


def test_add_task_is_one_commit(tmp_path):
    writes = []
    store = Store(tmp_path / "state.json")
    original = store._commit

    def counting_commit(changes):
        writes.append(sorted(changes))
        original(changes)

    store._commit = counting_commit
    repo = Repository(store)
    task = repo.add_task("2024-01-01", "Write")
    assert writes == [sorted(["2024-01-01", task.id])]


def test_add_task_failure_writes_nothing(tmp_path, monkeypatch):
    store = Store(tmp_path / "state.json")
    repo = Repository(store)
    parent = repo.add_task("2024-01-01", "Parent")
    before = {k: store.get(k) for k in store.keys()}

    original = Task.to_dict

    def flaky(self):
        if self.label == "Child":
            raise RuntimeError("crash between writes")
        return original(self)

    monkeypatch.setattr(Task, "to_dict", flaky)
    with pytest.raises(RuntimeError):
        repo.add_task(parent.id, "Child")
    assert {k: store.get(k) for k in store.keys()} == before


def test_add_task_rejects_empty_label(repo, store):
    with pytest.raises(ValidationError):
        repo.add_task("2024-01-01", "   ")
    assert store.keys() == []


def test_add_task_rejects_bad_parent(repo, store):
    with pytest.raises(ValidationError):
        repo.add_task("nope", "X")
    assert store.keys() == []


def test_add_task_rejects_non_ascii_date(repo, store):
    with pytest.raises(ValidationError):
        repo.add_task("２０２４-０１-０１", "X")
    assert store.keys() == []


def test_add_task_missing_task_parent(repo, store):
    with pytest.raises(NotFoundError):
        repo.add_task("abcdefghijklm", "X")
    assert store.keys() == []


def test_add_task_fires_change(repo, signal):
    seen = _changes(signal)
    task = repo.add_task("2024-01-01", "X")
    assert seen == [Change("task_added", task.id)]


def test_edit_task(repo, signal):
    task = repo.add_task("2024-01-01", "Old")
    seen = _changes(signal)
    edited = repo.edit_task(task.id, "  New  ")
    assert edited.label == "New"
    assert repo.task(task.id).label == "New"
    assert seen == [Change("task_edited", task.id)]


def test_edit_missing_task(repo):
    with pytest.raises(NotFoundError):
        repo.edit_task("abcdefghijklm", "New")


def test_toggle_task(repo, signal):
    task = repo.add_task("2024-01-01", "X")
    seen = _changes(signal)
    assert repo.toggle_task(task.id).completed is True
    assert repo.task(task.id).completed is True
    assert repo.toggle_task(task.id).completed is False
    assert [c.kind for c in seen] == ["task_toggled", "task_toggled"]


def test_reads_return_none_for_absent_or_malformed(repo):
    assert repo.day("2024-01-01") is None
    assert repo.day("garbage") is None
    assert repo.task("abcdefghijklm") is None
    assert repo.task("garbage") is None
    assert repo.resolve_parent("garbage") is None


def test_resolve_parent(repo):
    task = repo.add_task("2024-01-01", "X")
    assert isinstance(repo.resolve_parent("2024-01-01"), Day)
    assert isinstance(repo.resolve_parent(task.id), Task)


def test_children_skip_dangling_ids(repo, store):
    task = repo.add_task("2024-01-01", "Kept")
    day = repo.day("2024-01-01")
    ghost = day.add_task()
    store.set(day.date, day.to_dict())
    assert [t.id for t in repo.children(day)] == [task.id]
    assert store.get(ghost) is None


def test_children_skip_unparsable_records(repo, store):
    task = repo.add_task("2024-01-01", "Kept")
    day = repo.day("2024-01-01")
    broken = day.add_task()
    store.update({day.date: day.to_dict(), broken: {"id": broken, "label": "no parent"}})
    assert [t.id for t in repo.children(day)] == [task.id]


def test_find_or_create_day(repo, signal, store):
    seen = _changes(signal)
    day = repo.find_or_create_day("2024-01-01")
    again = repo.find_or_create_day("2024-01-01")
    assert day == again
    assert seen == [Change("day_created", "2024-01-01")]
    assert repo.find_or_create_day("bad") is None
    assert store.keys() == ["2024-01-01"]


def test_days_are_sorted(repo):
    for key in ("2024-01-03", "2024-01-01", "2024-01-02"):
        repo.find_or_create_day(key)
    assert [d.date for d in repo.days()] == ["2024-01-01", "2024-01-02", "2024-01-03"]


def test_reset(repo, signal, store):
    repo.add_task("2024-01-01", "X")
    seen = _changes(signal)
    repo.reset()
    assert store.keys() == []
    assert seen == [Change("reset")]


# ── Interactive flows ─────────────────────────────────────────


def test_add_interactive_empty_day_prompts_directly(repo):
    prompter = FakePrompter(answers=["First"])
    task = repo.add_interactive("2024-01-01", prompter)
    assert task.label == "First"
    assert prompter.offered == []
    assert prompter.prompts == [("Add a new task", "")]


def test_add_interactive_offers_children(repo):
    repo.add_task("2024-01-01", "Alpha")
    repo.add_task("2024-01-01", "Beta")
    prompter = FakePrompter(answers=["Gamma"], choices=["Add task to Monday, Jan 1"])
    task = repo.add_interactive("2024-01-01", prompter)
    assert prompter.offered == [["Add task to Monday, Jan 1", "Alpha", "Beta"]]
    assert task.parent == "2024-01-01"
    assert len(repo.day("2024-01-01").tasks) == 3


def test_add_interactive_drills_into_child(repo):
    alpha = repo.add_task("2024-01-01", "Alpha")
    inner = repo.add_task(alpha.id, "Inner")
    prompter = FakePrompter(answers=["Deep"], choices=["Alpha", "Inner"])
    task = repo.add_interactive("2024-01-01", prompter)
    assert task.parent == inner.id
    assert prompter.offered[1] == ["Add subtask", "Inner"]
    assert repo.task(inner.id).subtasks == [task.id]


def test_add_interactive_cancel_choice_writes_nothing(repo, store):
    repo.add_task("2024-01-01", "Alpha")
    before = {k: store.get(k) for k in store.keys()}
    with pytest.raises(UserCancelled):
        repo.add_interactive("2024-01-01", FakePrompter(choices=[None]))
    assert {k: store.get(k) for k in store.keys()} == before


def test_add_interactive_cancel_label_writes_nothing(repo, store):
    with pytest.raises(UserCancelled):
        repo.add_interactive("2024-01-01", FakePrompter(answers=[None]))
    assert store.keys() == []


def test_edit_interactive_prefills_label(repo):
    task = repo.add_task("2024-01-01", "Old")
    prompter = FakePrompter(answers=["New"])
    assert repo.edit_interactive(task.id, prompter).label == "New"
    assert prompter.prompts == [("Update task", "Old")]


UTC = ZoneInfo("UTC")


def test_pick_day_offers_configured_window(store):
    repo = Repository(store, settings=Settings(picker_days=2, timezone="UTC"))
    prompter = FakePrompter(choices=[format_key(day_ago(1, UTC))])
    assert repo.pick_day(prompter) == day_ago(1, UTC)
    offered = prompter.offered[0]
    assert len(offered) == 5
    assert offered[2] == format_key(today(UTC))
    assert offered[0] == format_key(day_ahead(2, UTC))


def test_add_to_day_interactive(store):
    repo = Repository(store, settings=Settings(picker_days=2, timezone="UTC"))
    target = day_ago(1, UTC)
    prompter = FakePrompter(answers=["Stretch"], choices=[format_key(target)])
    task = repo.add_to_day_interactive(prompter)
    assert task.parent == target
    assert repo.day(target).tasks == [task.id]


def test_add_to_day_interactive_cancel_writes_nothing(repo, store):
    with pytest.raises(UserCancelled):
        repo.add_to_day_interactive(FakePrompter())
    assert store.keys() == []


def test_add_to_today_and_tomorrow(repo):
    assert repo.today() == today(UTC)
    a = repo.add_to_today_interactive(FakePrompter(answers=["Now"]))
    b = repo.add_to_tomorrow_interactive(FakePrompter(answers=["Later"]))
    assert a.parent == today(UTC)
    assert b.parent == day_ahead(1, UTC)
