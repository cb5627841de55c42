# compass type definitions
# Rev 0.1.0

from __future__ import annotations
from enum import Enum
from typing import Literal

# Entity classification hierarchy: category → task → subtask
EntityType = Literal["category", "task", "subtask"]

ENTITY_TYPES: tuple[str, ...] = ("category", "task", "subtask")


class CompletionMode(str, Enum):
    """How a node's completion value came to be."""

    INDEPENDENT = "independent"   # set directly or by a work-log estimate
    AGGREGATED = "aggregated"     # floor mean of the children
