# Rev 0.1.0
"""Lightweight entities for the category → task → subtask tree"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from compass.models.types import CompletionMode
from compass.services.completion import Completion, aggregate


@dataclass
class WorkLog:
    id: str
    category_id: str
    task_id: str
    subtask_id: Optional[str]          # None for task-level work
    hours_worked: float
    work_description: str
    completion_estimate: int
    created_at: datetime               # UTC, tz-aware


@dataclass
class Subtask:
    id: str
    task_id: str
    category_id: str
    name: str
    description: str = ""
    completion: int = 0
    public: bool = False
    work_logs: List[WorkLog] = field(default_factory=list)


@dataclass
class Task:
    id: str
    category_id: str
    name: str
    description: str = ""
    completion: int = 0
    public: bool = False
    subtasks: List[Subtask] = field(default_factory=list)
    work_logs: List[WorkLog] = field(default_factory=list)

    def completion_state(self) -> Completion:
        mode = CompletionMode.AGGREGATED if self.subtasks else CompletionMode.INDEPENDENT
        return Completion(self.completion, mode)


@dataclass
class Category:
    id: str
    name: str
    description: str = ""
    public: bool = False
    tasks: List[Task] = field(default_factory=list)
    work_logs: List[WorkLog] = field(default_factory=list)

    def average_completion(self) -> int:
        return aggregate(t.completion for t in self.tasks)
