# Rev 0.1.0
"""Persistence contract consumed by the web layer.

Implemented by TreeEngine (SQLite) and InMemoryTreeStore. Lookups and
mutations on a missing id raise NotFoundError.
"""
from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from .entities import Category, Subtask, Task, WorkLog
from .types import EntityType


class TreeStore(Protocol):
    # categories
    def get_categories(self) -> List[Category]: ...
    def get_category(self, category_id: str) -> Category: ...
    def add_category(self, name: Optional[str] = None) -> Category: ...
    def update_category(self, cat: Category) -> Category: ...
    def delete_category(self, category_id: str) -> Category: ...
    def reorder_categories(self, ids: Sequence[str]) -> List[str]: ...

    # tasks
    def get_task(self, task_id: str) -> Task: ...
    def add_task(self, category_id: str, name: Optional[str] = None) -> Task: ...
    def update_task(self, task: Task) -> Task: ...
    def delete_task(self, task_id: str) -> Task: ...
    def reorder_tasks(self, category_id: str, ids: Sequence[str]) -> List[str]: ...
    def move_task(self, task_id: str, new_category_id: str, new_index: int) -> Task: ...

    # subtasks
    def get_subtask(self, subtask_id: str) -> Subtask: ...
    def add_subtask(self, task_id: str, name: Optional[str] = None) -> Subtask: ...
    def update_subtask(self, sub: Subtask) -> Subtask: ...
    def delete_subtask(self, subtask_id: str) -> Subtask: ...
    def reorder_subtasks(self, task_id: str, ids: Sequence[str]) -> List[str]: ...

    # visibility
    def set_public(self, entity_type: EntityType, entity_id: str, public: bool) -> None: ...

    # work logs
    def add_work_log_for_task(self, task_id: str, hours_worked: float, work_description: str,
                              completion_estimate: int, created_at: Optional[datetime] = None) -> WorkLog: ...
    def add_work_log_for_subtask(self, subtask_id: str, hours_worked: float, work_description: str,
                                 completion_estimate: int, created_at: Optional[datetime] = None) -> WorkLog: ...
    def get_work_logs_for_category(self, category_id: str) -> List[WorkLog]: ...
    def get_work_logs_for_task(self, task_id: str) -> List[WorkLog]: ...
    def get_work_logs_for_subtask(self, subtask_id: str) -> List[WorkLog]: ...
