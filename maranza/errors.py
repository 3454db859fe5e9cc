"""Domain exceptions.

Everything derives from ValueError so callers that only care about "the request
was refused" can keep catching ValueError; routes map the subclasses to status codes.
"""

from __future__ import annotations


class GameError(ValueError):
    """Base exception for refused game actions."""


class NotFoundError(GameError):
    """A referenced entity (activity, item, character, clock) does not exist."""


class ConflictError(GameError):
    """The action clashes with the current session state (busy, already playing)."""


class NoCharacterError(GameError):
    def __init__(self, message: str = "Game not started or character not created") -> None:
        super().__init__(message)


class InsufficientHoursError(GameError):
    def __init__(self, message: str = "Not enough hours left in the day") -> None:
        super().__init__(message)


class InsufficientResourceError(GameError):
    """A negative effect would push a stat below zero."""

    def __init__(self, message: str, *, stat: str) -> None:
        super().__init__(message)
        self.stat = stat


class PurchaseError(GameError):
    pass
