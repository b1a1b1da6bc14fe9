"""Day/Task repository: find-or-create, resolve, add, edit, toggle."""

from __future__ import annotations

import logging
from typing import Union

from pile.dates import day_ahead, format_key, today
from pile.errors import NotFoundError, ParseError, UserCancelled, ValidationError
from pile.events import Change, ChangeSignal
from pile.ids import validate_task_id
from pile.keys import DateKey, parse_key, validate_date_key
from pile.models import Day, Settings, Task, sort_days
from pile.prompts import Prompter, prompt_date_selection, prompt_new_task, prompt_update_task
from pile.store import Store
from pile.workspace import get_user_timezone

logger = logging.getLogger(__name__)

Parent = Union[Day, Task]


def _clean_label(label: str) -> str:
    label = (label or "").strip()
    if not label:
        raise ValidationError("Task label cannot be empty")
    return label


class Repository:
    """
    Orchestrates Day and Task records on top of a Store.

    Every mutator commits in one store transaction and then fires the
    change signal, so observers only ever re-read committed state.
    """

    def __init__(
        self,
        store: Store,
        signal: ChangeSignal | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.signal = signal or ChangeSignal()
        self.settings = settings or Settings()

    # ---- reads ----

    def day(self, key: str) -> Day | None:
        """The stored Day for *key*, or None (also for a malformed key)."""
        if not validate_date_key(key):
            return None
        return Day.parse(self.store.get(key))

    def task(self, task_id: str) -> Task | None:
        """The stored Task for *task_id*, or None (also for a malformed id)."""
        if not validate_task_id(task_id):
            return None
        return Task.parse(self.store.get(task_id))

    def resolve_parent(self, key: str) -> Parent | None:
        if validate_date_key(key):
            return self.day(key)
        return self.task(key)

    def children(self, parent: Parent) -> list[Task]:
        """Tasks referenced by *parent*, in display order. Dangling ids are skipped."""
        ids = parent.tasks if isinstance(parent, Day) else parent.subtasks
        out = []
        for task_id in ids:
            try:
                task = self.task(task_id)
            except (ParseError, ValidationError):
                logger.warning("Skipping unparsable task %s", task_id)
                continue
            if task is None:
                logger.debug("Dangling task reference %s", task_id)
                continue
            out.append(task)
        return out

    def days(self) -> list[Day]:
        """All stored days in chronological order."""
        return sort_days(self.store.get_dates())

    # ---- mutations ----

    def find_or_create_day(self, key: str) -> Day | None:
        created = self.store.get(key) is None
        day = self.store.get_or_create_day(key)
        if day is not None and created:
            self.signal.fire(Change("day_created", str(day.date)))
        return day

    def add_task(self, parent_key: str, label: str) -> Task:
        """Create a Task under a day or task and link it, in one commit.

        A date-key parent is created if absent; a missing task parent
        raises NotFoundError.
        """
        label = _clean_label(label)
        parent_key = parse_key(parent_key)
        with self.store.transaction() as tx:
            if isinstance(parent_key, DateKey):
                parent: Parent | None = tx.get_or_create_day(parent_key)
            else:
                parent = self.task(parent_key)
            if parent is None:
                raise NotFoundError(f"Parent not found: {parent_key}")

            if isinstance(parent, Day):
                task_id = parent.add_task()
                tx.update({parent.date: parent.to_dict()})
            else:
                task_id = parent.add_subtask()
                tx.update({parent.id: parent.to_dict()})
            task = Task(id=task_id, parent=parent_key, label=label)
            tx.update({task.id: task.to_dict()})

        logger.info("Added task %s under %s", task.id, parent_key)
        self.signal.fire(Change("task_added", str(task.id)))
        return task

    def _require_task(self, task_id: str) -> Task:
        task = self.task(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return task

    def edit_task(self, task_id: str, label: str) -> Task:
        label = _clean_label(label)
        with self.store.transaction() as tx:
            task = self._require_task(task_id)
            task.label = label
            tx.set(task.id, task.to_dict())
        logger.info("Edited task %s", task.id)
        self.signal.fire(Change("task_edited", str(task.id)))
        return task

    def toggle_task(self, task_id: str) -> Task:
        with self.store.transaction() as tx:
            task = self._require_task(task_id).toggle_completed()
            tx.set(task.id, task.to_dict())
        logger.info("Toggled task %s completed=%s", task.id, task.completed)
        self.signal.fire(Change("task_toggled", str(task.id)))
        return task

    def reset(self) -> None:
        """Clear every key. Confirmation is the caller's job."""
        self.store.reset()
        self.signal.fire(Change("reset"))

    def refresh(self) -> None:
        self.signal.fire(Change("refresh"))

    # ---- interactive flows ----

    def add_interactive(self, parent_key: str, prompter: Prompter) -> Task:
        """Walk down from *parent_key* asking where to add, then add there.

        When the parent already has children the user may pick one of
        them to descend into, or the add option to add at this level.
        Cancelling any prompt raises UserCancelled before anything is
        written.
        """
        parsed = parse_key(parent_key)
        if isinstance(parsed, DateKey):
            parent = self.day(parsed) or Day(parsed)
            add_option = f"Add task to {format_key(parsed)}"
        else:
            parent = self._require_task(parsed)
            add_option = "Add subtask"

        children = self.children(parent)
        if children:
            options = [add_option, *(t.label for t in children)]
            choice = prompter.choose(
                options,
                placeholder="Select a task to add a subtask to or add a new task",
            )
            if choice is None or choice not in options:
                raise UserCancelled("No task selected")
        else:
            choice = add_option

        if choice == add_option:
            label = prompt_new_task(prompter, "Add a new task")
            return self.add_task(parsed, label)

        # Duplicate labels resolve to the first match
        child = children[options.index(choice) - 1]
        return self.add_interactive(child.id, prompter)

    def today(self) -> DateKey:
        """Today's key in the configured timezone."""
        return today(get_user_timezone(self.settings))

    def pick_day(self, prompter: Prompter) -> DateKey:
        """Offer ``picker_days`` days on each side of today and return the pick."""
        tz = get_user_timezone(self.settings)
        return prompt_date_selection(prompter, self.settings.picker_days, tz)

    def add_to_day_interactive(self, prompter: Prompter) -> Task:
        return self.add_interactive(self.pick_day(prompter), prompter)

    def add_to_today_interactive(self, prompter: Prompter) -> Task:
        return self.add_interactive(self.today(), prompter)

    def add_to_tomorrow_interactive(self, prompter: Prompter) -> Task:
        tomorrow = day_ahead(1, get_user_timezone(self.settings))
        return self.add_interactive(tomorrow, prompter)

    def edit_interactive(self, task_id: str, prompter: Prompter) -> Task:
        task = self._require_task(task_id)
        label = prompt_update_task(prompter, task.label)
        return self.edit_task(task.id, label)
