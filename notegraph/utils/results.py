"""
Per-item outcome container for loops that must not stop on the first error.

Loops over independent sub-items (references, topics) collect one Outcome per
item; callers consume the successes and log the failures.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Result of processing one sub-item: either a value or an error."""

    item: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, item: str, value: T) -> "Outcome[T]":
        return cls(item=item, value=value)

    @classmethod
    def failure(cls, item: str, error: Exception) -> "Outcome[T]":
        return cls(item=item, error=error)


def successes(outcomes: list[Outcome[T]]) -> list[T]:
    """Values of the successful outcomes, in order."""
    return [o.value for o in outcomes if o.ok]


def failures(outcomes: list[Outcome[T]]) -> list[Outcome[T]]:
    """Failed outcomes, in order."""
    return [o for o in outcomes if not o.ok]
