"""Task identifier generation and shape validation."""

from __future__ import annotations

import re
import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_TASK_ID_RE = re.compile(r"[a-z0-9]+[a-z0-9]{12,}")

# Random tail is drawn from [10**12, 10**13): 8 or 9 base-36 digits.
_RANDOM_FLOOR = 10**12
_RANDOM_SPAN = 9 * 10**12


def to_base36(n: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if n < 0:
        raise ValueError(f"Cannot encode negative number: {n}")
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_task_id() -> str:
    """Return a new task id: base-36 millisecond clock + base-36 random tail.

    Uniqueness is probabilistic; nothing is persisted between calls.
    """
    millis = time.time_ns() // 1_000_000
    tail = _RANDOM_FLOOR + secrets.randbelow(_RANDOM_SPAN)
    return to_base36(millis) + to_base36(tail)


def validate_task_id(key: str) -> bool:
    """True if *key* has the shape of a generated task id (not an existence check)."""
    return isinstance(key, str) and _TASK_ID_RE.fullmatch(key) is not None
