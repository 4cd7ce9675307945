"""Exception hierarchy for Star Destiny.

Only input validation and catalog problems are raised to callers.
Persistence corruption and delivery failures are recovered where they occur
and reported through structured logs instead.
"""

from __future__ import annotations


class StarDestinyError(Exception):
    """Base exception for all Star Destiny errors."""


class InvalidDateError(StarDestinyError, ValueError):
    """Raised when a birth date is malformed or outside the accepted window.

    Attributes:
        value: The rejected input as received.
        reason: Short human-readable explanation.
    """

    def __init__(self, value: object, reason: str) -> None:
        super().__init__(f"Invalid birth date {value!r}: {reason}")
        self.value = value
        self.reason = reason


class UnknownMansionError(StarDestinyError, LookupError):
    """Raised when a mansion id is not present in the catalog."""

    def __init__(self, mansion_id: object) -> None:
        super().__init__(f"No mansion with id {mansion_id!r}")
        self.mansion_id = mansion_id


class CatalogError(StarDestinyError):
    """Raised when the mansion catalog file is malformed."""
