"""Tagged store keys: date keys for days, generated ids for tasks.

Both are ``str`` subclasses, so they serialize and index the store like
plain strings, but a value of either type has already passed its shape
check. The two shapes never overlap: date keys contain ``-`` and task ids
are lowercase alphanumerics only.
"""

from __future__ import annotations

import re
from typing import Union

from pile.errors import ValidationError
from pile.ids import validate_task_id

_DATE_KEY_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def validate_date_key(key: str) -> bool:
    """True if *key* looks like YYYY-MM-DD.

    Syntactic only: "2024-13-40" passes. Digits are ASCII only.
    """
    return isinstance(key, str) and _DATE_KEY_RE.fullmatch(key) is not None


class DateKey(str):
    """Canonical YYYY-MM-DD key of a Day."""

    __slots__ = ()

    def __new__(cls, value: str) -> DateKey:
        if isinstance(value, cls):
            return value
        if not validate_date_key(value):
            raise ValidationError(f"Invalid date key: {value!r}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"DateKey({str(self)!r})"


class TaskId(str):
    """Generated identifier of a Task."""

    __slots__ = ()

    def __new__(cls, value: str) -> TaskId:
        if isinstance(value, cls):
            return value
        if not validate_task_id(value):
            raise ValidationError(f"Invalid task id: {value!r}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"TaskId({str(self)!r})"


ParentKey = Union[DateKey, TaskId]


def parse_key(raw: str) -> ParentKey:
    """Classify *raw* as a DateKey or a TaskId, or raise ValidationError."""
    if isinstance(raw, (DateKey, TaskId)):
        return raw
    if validate_date_key(raw):
        return DateKey(raw)
    if validate_task_id(raw):
        return TaskId(raw)
    raise ValidationError(f"Not a date key or task id: {raw!r}")
