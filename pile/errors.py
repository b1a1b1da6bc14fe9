"""Error taxonomy for Pile.

Entity, store and repository code raises these and never catches them;
only the outer adapters translate them for a user.
"""

from __future__ import annotations


class PileError(Exception):
    """Base class for every error raised by the pile package."""


class ValidationError(PileError, ValueError):
    """A key, label or option failed its shape check."""


class NotFoundError(PileError, LookupError):
    """A mutation addressed an entity that is not in the store."""


class UserCancelled(PileError):
    """An interactive prompt was dismissed without a value."""


class ParseError(PileError, ValueError):
    """Serialized data or date text could not be parsed."""
