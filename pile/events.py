"""Change notification for observers of the store (e.g. a tree view)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CHANGE_KINDS = {
    "day_created",
    "task_added",
    "task_edited",
    "task_toggled",
    "reset",
    "refresh",
}


@dataclass(frozen=True)
class Change:
    kind: str = "refresh"
    key: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in CHANGE_KINDS:
            raise ValueError(f"Unknown change kind: {self.kind}")


Observer = Callable[[Change], None]


class ChangeSignal:
    """Fan a Change out to every subscribed observer.

    An observer that raises is logged and skipped; the remaining observers
    still run.
    """

    def __init__(self) -> None:
        self._observers: list[Observer] = []

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer*. Returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def fire(self, change: Change | None = None) -> None:
        change = change or Change()
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                logger.exception("Change observer failed kind=%s key=%s", change.kind, change.key)

    def __len__(self) -> int:
        return len(self._observers)
