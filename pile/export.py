"""Render a day's task tree for copying: markdown list or rich-text HTML."""

from __future__ import annotations

import logging

from pile.errors import ValidationError
from pile.models import EXPORT_FORMATS, Task
from pile.prompts import Prompter
from pile.repository import Repository

logger = logging.getLogger(__name__)


def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _markdown_lines(
    repo: Repository,
    tasks: list[Task],
    depth: int,
    indent: int,
    completions: bool,
    seen: set[str],
) -> list[str]:
    lines = []
    for task in tasks:
        if task.id in seen:
            continue
        seen.add(task.id)
        box = ("[x] " if task.completed else "[ ] ") if completions else ""
        lines.append(f"{' ' * (indent * depth)}- {box}{task.label}")
        lines.extend(
            _markdown_lines(repo, repo.children(task), depth + 1, indent, completions, seen)
        )
    return lines


def _richtext(repo: Repository, tasks: list[Task], completions: bool, seen: set[str]) -> str:
    items = []
    for task in tasks:
        if task.id in seen:
            continue
        seen.add(task.id)
        label = _escape(task.label)
        if completions and task.completed:
            label = f"<s>{label}</s>"
        nested = _richtext(repo, repo.children(task), completions, seen)
        items.append(f"<li>{label}{nested}</li>")
    if not items:
        return ""
    return "<ul>" + "".join(items) + "</ul>"


def export_day(
    repo: Repository,
    key: str,
    fmt: str | None = None,
    indent: int | None = None,
    completions: bool | None = None,
) -> str:
    """Render the tasks of day *key*. An absent day renders as ''.

    Unset options fall back to the repository settings.
    """
    settings = repo.settings
    fmt = fmt or settings.export_format
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"Unknown export format: {fmt!r}")
    indent = settings.spaces_in_indent if indent is None else indent
    completions = settings.enable_completions if completions is None else completions

    day = repo.day(key)
    if day is None:
        logger.info("Nothing to export for %s", key)
        return ""
    tasks = repo.children(day)
    if fmt == "markdown":
        lines = _markdown_lines(repo, tasks, 0, indent, completions, set())
        return "\n".join(lines) + ("\n" if lines else "")
    return _richtext(repo, tasks, completions, set())


def export_picked_day(repo: Repository, prompter: Prompter, fmt: str | None = None) -> str:
    """Ask for a day with the date picker, then export it."""
    return export_day(repo, repo.pick_day(prompter), fmt)
