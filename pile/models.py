"""Typed dataclasses for the Pile data model.

All models use from_dict/to_dict for JSON/YAML serialization.
Unknown keys are ignored; missing optional keys use defaults.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pile.errors import ParseError, ValidationError
from pile.ids import generate_task_id
from pile.keys import DateKey, ParentKey, TaskId, parse_key


def _load_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON: {e}") from e


def _id_list(raw: Any, what: str) -> list[TaskId]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ParseError(f"{what} must be a list, got {type(raw).__name__}")
    return [TaskId(str(t)) for t in raw]


def _flag(raw: Any, what: str) -> bool:
    if not isinstance(raw, bool):
        raise ParseError(f"{what} must be true or false, got {raw!r}")
    return raw


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: TaskId
    parent: ParentKey  # DateKey for top-level tasks, TaskId for subtasks
    label: str
    subtasks: list[TaskId] = field(default_factory=list)
    completed: bool = False

    @property
    def is_subtask(self) -> bool:
        return isinstance(self.parent, TaskId)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Task:
        if not isinstance(d, Mapping):
            raise ParseError(f"Task must be an object, got {type(d).__name__}")
        # "day" is the persisted name of the parent key
        parent = d.get("day", d.get("parent"))
        if "id" not in d or parent is None or "label" not in d:
            raise ParseError(f"Task is missing id, day or label: {dict(d)!r}")
        return cls(
            id=TaskId(str(d["id"])),
            parent=parse_key(str(parent)),
            label=str(d["label"]),
            subtasks=_id_list(d.get("subtasks"), "subtasks"),
            completed=_flag(d.get("completed", False), "completed"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "day": str(self.parent),
            "label": self.label,
            "subtasks": [str(t) for t in self.subtasks],
            "completed": self.completed,
        }

    @classmethod
    def parse(cls, raw: Task | Mapping[str, Any] | str | None) -> Task | None:
        """Build a Task from an instance, a mapping or a JSON string.

        Returns None for empty input. Always returns a fresh instance.
        """
        if not raw:
            return None
        if isinstance(raw, Task):
            return cls(raw.id, raw.parent, raw.label, list(raw.subtasks), raw.completed)
        if isinstance(raw, str):
            raw = _load_json(raw)
        return cls.from_dict(raw)

    def toggle_completed(self) -> Task:
        self.completed = not self.completed
        return self

    def add_subtask(self) -> TaskId:
        """Append a freshly generated id to ``subtasks`` and return it.

        In-memory only; the caller persists both records.
        """
        task_id = TaskId(generate_task_id())
        self.subtasks.append(task_id)
        return task_id


# ── Days ──────────────────────────────────────────────────────


@dataclass
class Day:
    date: DateKey
    tasks: list[TaskId] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Day:
        if not isinstance(d, Mapping):
            raise ParseError(f"Day must be an object, got {type(d).__name__}")
        if "date" not in d:
            raise ParseError(f"Day is missing date: {dict(d)!r}")
        return cls(
            date=DateKey(str(d["date"])),
            tasks=_id_list(d.get("tasks"), "tasks"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"date": str(self.date), "tasks": [str(t) for t in self.tasks]}

    @classmethod
    def parse(cls, raw: Day | Mapping[str, Any] | str | None) -> Day | None:
        """Build a Day from an instance, a mapping or a JSON string."""
        if not raw:
            return None
        if isinstance(raw, Day):
            return cls(raw.date, list(raw.tasks))
        if isinstance(raw, str):
            raw = _load_json(raw)
        return cls.from_dict(raw)

    @staticmethod
    def compare(a: Day, b: Day) -> int:
        """Three-way comparison on date keys (lexicographic == chronological)."""
        return (a.date > b.date) - (a.date < b.date)

    def add_task(self) -> TaskId:
        """Append a freshly generated id to ``tasks`` and return it.

        In-memory only; the caller persists both records.
        """
        task_id = TaskId(generate_task_id())
        self.tasks.append(task_id)
        return task_id


def sort_days(days: list[Day]) -> list[Day]:
    """Return *days* in chronological order."""
    return sorted(days, key=lambda d: d.date)


# ── Settings ──────────────────────────────────────────────────


STORAGE_SCOPES = ("global", "workspace")
EXPORT_FORMATS = ("richtext", "markdown")


def _int_setting(d: dict[str, Any], name: str, default: int) -> int:
    raw = d.get(name, default)
    if isinstance(raw, bool):
        raise ValidationError(f"{name} must be an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from e


def _bool_setting(d: dict[str, Any], name: str, default: bool) -> bool:
    raw = d.get(name, default)
    if not isinstance(raw, bool):
        raise ValidationError(f"{name} must be true or false, got {raw!r}")
    return raw


@dataclass
class Settings:
    storage_scope: str = "workspace"
    export_format: str = "richtext"
    spaces_in_indent: int = 2
    enable_completions: bool = False
    picker_days: int = 10
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if self.storage_scope not in STORAGE_SCOPES:
            raise ValidationError(f"Invalid storage scope: {self.storage_scope!r}")
        if self.export_format not in EXPORT_FORMATS:
            raise ValidationError(f"Invalid export format: {self.export_format!r}")
        if self.spaces_in_indent < 0 or self.picker_days < 0:
            raise ValidationError("spaces_in_indent and picker_days must be >= 0")

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            storage_scope=str(d.get("storage_scope", "workspace")).strip().lower(),
            export_format=str(d.get("export_format", "richtext")).strip().lower(),
            spaces_in_indent=_int_setting(d, "spaces_in_indent", 2),
            enable_completions=_bool_setting(d, "enable_completions", False),
            picker_days=_int_setting(d, "picker_days", 10),
            timezone=str(d.get("timezone", "UTC")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "storage_scope": self.storage_scope,
            "export_format": self.export_format,
            "spaces_in_indent": self.spaces_in_indent,
            "enable_completions": self.enable_completions,
            "picker_days": self.picker_days,
            "timezone": self.timezone,
        }
