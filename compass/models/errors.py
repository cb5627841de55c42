# Rev 0.1.0

"""Error kinds raised by the tree engine and the stores.

NotFoundError and InvalidInputError are expected conditions the caller maps to
client responses; TransactionFailure means storage could not commit and nothing
was applied.
"""
from __future__ import annotations
from typing import Any, Optional


class CompassError(Exception):
    """Base class for all compass errors."""


class NotFoundError(CompassError):
    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class InvalidInputError(CompassError, ValueError):
    def __init__(self, message: str, *, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class CompletionLockedError(InvalidInputError):
    """A direct completion write hit a task whose value is derived from subtasks."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(
            f"task {task_id} has subtasks; its completion is aggregated and cannot be set directly",
            field="completion",
        )


class TransactionFailure(CompassError):
    """Storage could not commit (lock timeout, constraint violation, I/O error)."""
