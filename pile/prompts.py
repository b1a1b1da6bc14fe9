"""Prompt port and the prompts built on it.

The host (editor, TUI, test fake) implements ``Prompter``; everything
here only talks to that protocol.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import tzinfo
from typing import Protocol

from pile.dates import days_ago, days_ahead, format_key, today
from pile.errors import UserCancelled
from pile.keys import DateKey


class Prompter(Protocol):
    """Modal text input plus a pick-one list. None means the user cancelled."""

    def prompt(self, message: str, value: str = "") -> str | None: ...

    def choose(self, options: Sequence[str], placeholder: str = "") -> str | None: ...


def prompt_new_task(prompter: Prompter, message: str = "Enter task") -> str:
    task = prompter.prompt(message)
    if not task or not task.strip():
        raise UserCancelled("Task cannot be empty")
    return task.strip()


def prompt_update_task(prompter: Prompter, initial: str) -> str:
    task = prompter.prompt("Update task", value=initial)
    if not task or not task.strip():
        raise UserCancelled("Task cannot be empty")
    return task.strip()


def date_options(days: int = 10, tz: tzinfo | None = None) -> dict[str, DateKey]:
    """Formatted label -> date key, from *days* ahead down to *days* ago."""
    keys = [*days_ahead(days, tz), today(tz), *days_ago(days, tz)]
    return {format_key(k): k for k in keys}


def prompt_date_selection(prompter: Prompter, days: int = 10, tz: tzinfo | None = None) -> DateKey:
    options = date_options(days, tz)
    choice = prompter.choose(list(options), placeholder="Select a day")
    if not choice or choice not in options:
        raise UserCancelled("No day selected")
    return options[choice]
