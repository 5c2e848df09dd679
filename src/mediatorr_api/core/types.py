"""Shared type definitions for the application."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from mediatorr_api.core.enums import ReadOutcome

# Callable type aliases for dependency injection
type Clock = Callable[[], datetime]


@dataclass(frozen=True, slots=True)
class ReadResult[T]:
    """Result of a read that must never fail its caller.

    Distinguishes a missing source from one that exists but could not be
    used, so callers can degrade to "no value" while tests can still tell
    the two apart.
    """

    outcome: ReadOutcome
    value: T | None = None
    error: str | None = None

    @classmethod
    def present(cls, value: T) -> "ReadResult[T]":
        return cls(ReadOutcome.PRESENT, value)

    @classmethod
    def absent(cls) -> "ReadResult[T]":
        return cls(ReadOutcome.ABSENT)

    @classmethod
    def malformed(cls, error: str) -> "ReadResult[T]":
        return cls(ReadOutcome.MALFORMED, error=error)

    @property
    def is_present(self) -> bool:
        return self.outcome is ReadOutcome.PRESENT

    def value_or_none(self) -> T | None:
        return self.value if self.is_present else None
