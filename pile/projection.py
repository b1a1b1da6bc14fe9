"""Read-only tree projections of days and tasks for a display layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pile.dates import format_key, today
from pile.errors import ParseError
from pile.models import Day, Task
from pile.repository import Repository
from pile.workspace import get_user_timezone

logger = logging.getLogger(__name__)


@dataclass
class DayItem:
    key: str
    label: str
    tooltip: str
    collapsible: str  # expanded, collapsed
    children: list[str] = field(default_factory=list)
    context_value: str = "day"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "tooltip": self.tooltip,
            "contextValue": self.context_value,
            "collapsible": self.collapsible,
            "children": list(self.children),
        }


@dataclass
class TaskItem:
    key: str
    label: str
    tooltip: str
    collapsible: str  # collapsed, none
    completed: bool = False
    checkbox: str | None = None  # checked, unchecked; None when completions are off
    children: list[str] = field(default_factory=list)
    context_value: str = "task"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "tooltip": self.tooltip,
            "contextValue": self.context_value,
            "collapsible": self.collapsible,
            "completed": self.completed,
            "children": list(self.children),
        }
        if self.checkbox is not None:
            d["checkbox"] = self.checkbox
        return d


def day_item(day: Day, today_key: str | None = None) -> DayItem:
    """Today's day starts expanded, every other day collapsed."""
    if today_key is None:
        today_key = today()
    try:
        label = format_key(day.date)
    except ParseError:
        logger.warning("Day %s is not a calendar date", day.date)
        label = str(day.date)
    return DayItem(
        key=str(day.date),
        label=label,
        tooltip=f"Tasks for {label}",
        collapsible="expanded" if day.date == today_key else "collapsed",
        children=[str(t) for t in day.tasks],
    )


def task_item(task: Task, enable_completions: bool = False) -> TaskItem:
    checkbox = None
    if enable_completions:
        checkbox = "checked" if task.completed else "unchecked"
    return TaskItem(
        key=str(task.id),
        label=task.label,
        tooltip=task.label,
        collapsible="collapsed" if task.subtasks else "none",
        completed=task.completed,
        checkbox=checkbox,
        children=[str(t) for t in task.subtasks],
    )


def _task_node(repo: Repository, task: Task, seen: set[str]) -> dict[str, Any]:
    node = task_item(task, repo.settings.enable_completions).to_dict()
    seen.add(task.id)
    node["items"] = [
        _task_node(repo, child, seen)
        for child in repo.children(task)
        if child.id not in seen
    ]
    return node


def build_tree(repo: Repository, today_key: str | None = None) -> list[dict[str, Any]]:
    """Nested dicts for every stored day, chronological, with task subtrees.

    Dangling ids are left out of ``items`` but still listed in
    ``children``.
    """
    if today_key is None:
        today_key = today(get_user_timezone(repo.settings))
    out = []
    for day in repo.days():
        node = day_item(day, today_key).to_dict()
        seen: set[str] = set()
        node["items"] = [_task_node(repo, t, seen) for t in repo.children(day)]
        out.append(node)
    return out
