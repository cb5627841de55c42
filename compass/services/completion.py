# Rev 0.1.0

"""Completion aggregation (Rev 0.1.0)
- aggregate(): floor mean of child completions, 0 for no children
- Completion: tagged value making the independent → aggregated → independent
  transitions explicit
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Sequence

from compass.models.errors import CompletionLockedError, InvalidInputError
from compass.models.types import CompletionMode

MIN_COMPLETION = 0
MAX_COMPLETION = 100


def check_completion(value: int, *, field: str = "completion") -> int:
    """Return ``value`` as an int in [0, 100] or raise InvalidInputError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{field} must be an integer, got {value!r}", field=field)
    if not MIN_COMPLETION <= value <= MAX_COMPLETION:
        raise InvalidInputError(f"{field} must be between 0 and 100, got {value}", field=field)
    return value


def aggregate(child_completions: Iterable[int]) -> int:
    values = list(child_completions)
    if not values:
        return 0
    return sum(values) // len(values)


@dataclass(frozen=True)
class Completion:
    value: int
    mode: CompletionMode

    @classmethod
    def independent(cls, value: int) -> "Completion":
        return cls(check_completion(value), CompletionMode.INDEPENDENT)

    @classmethod
    def aggregated(cls, value: int) -> "Completion":
        return cls(check_completion(value), CompletionMode.AGGREGATED)

    @property
    def is_aggregated(self) -> bool:
        return self.mode is CompletionMode.AGGREGATED

    def reconcile(self, child_completions: Sequence[int]) -> "Completion":
        """State after the child set or a child value changed.

        With children the value is recomputed; with none the node becomes
        independent again and keeps whatever value it last had.
        """
        if child_completions:
            return Completion.aggregated(aggregate(child_completions))
        return Completion.independent(self.value)

    def set_directly(self, value: int, *, owner_id: str = "") -> "Completion":
        if self.is_aggregated:
            raise CompletionLockedError(owner_id)
        return Completion.independent(value)
