# Rev 0.1.0

"""Non-persistent TreeStore (Rev 0.1.0)
- Same contract and semantics as TreeEngine, backed by plain lists
- Sibling order is list position
- One RLock guards every operation; results are deep copies so callers never
  hold references into the live tree
"""
from __future__ import annotations
import copy
import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from compass.models.entities import Category, Subtask, Task, WorkLog
from compass.models.errors import InvalidInputError, NotFoundError
from compass.models.types import ENTITY_TYPES, EntityType
from compass.models.validation import check_hours
from compass.repositories.base import new_id
from compass.services.completion import check_completion
from compass.services.tree_engine import DEFAULT_NAMES

log = logging.getLogger(__name__)


def _reordered(items: list, ids: Sequence[str]) -> list:
    lookup = {item.id: item for item in items}
    out = []
    for sid in ids:
        if sid in lookup:
            out.append(lookup.pop(sid))
    # leftovers keep their relative order after the listed ones
    out.extend(item for item in items if item.id in lookup)
    return out


class InMemoryTreeStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._categories: List[Category] = []
        self._work_logs: List[WorkLog] = []   # insertion order

    # ---- lookup helpers (caller holds the lock)
    def _find_category(self, category_id: str) -> Category:
        for c in self._categories:
            if c.id == category_id:
                return c
        raise NotFoundError("category", category_id)

    def _find_task(self, task_id: str) -> Tuple[Category, Task]:
        for c in self._categories:
            for t in c.tasks:
                if t.id == task_id:
                    return c, t
        raise NotFoundError("task", task_id)

    def _find_subtask(self, subtask_id: str) -> Tuple[Task, Subtask]:
        for c in self._categories:
            for t in c.tasks:
                for s in t.subtasks:
                    if s.id == subtask_id:
                        return t, s
        raise NotFoundError("subtask", subtask_id)

    @staticmethod
    def _reconcile(task: Task) -> None:
        task.completion = task.completion_state().reconcile([s.completion for s in task.subtasks]).value

    @staticmethod
    def _newest_first(logs: List[WorkLog]) -> List[WorkLog]:
        indexed = list(enumerate(logs))
        indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [copy.deepcopy(wl) for _, wl in indexed]

    # ---- reads
    def get_categories(self) -> List[Category]:
        with self._lock:
            return copy.deepcopy(self._categories)

    def get_category(self, category_id: str) -> Category:
        with self._lock:
            return copy.deepcopy(self._find_category(category_id))

    def get_task(self, task_id: str) -> Task:
        with self._lock:
            return copy.deepcopy(self._find_task(task_id)[1])

    def get_subtask(self, subtask_id: str) -> Subtask:
        with self._lock:
            return copy.deepcopy(self._find_subtask(subtask_id)[1])

    # ---- categories
    def add_category(self, name: Optional[str] = None) -> Category:
        with self._lock:
            cat = Category(id=new_id(), name=name or DEFAULT_NAMES["category"])
            self._categories.insert(0, cat)
            return copy.deepcopy(cat)

    def update_category(self, cat: Category) -> Category:
        with self._lock:
            current = self._find_category(cat.id)
            current.name = cat.name
            current.description = cat.description or ""
            current.public = bool(cat.public)
            return copy.deepcopy(current)

    def delete_category(self, category_id: str) -> Category:
        with self._lock:
            cat = self._find_category(category_id)
            self._categories.remove(cat)
            self._work_logs = [wl for wl in self._work_logs if wl.category_id != category_id]
            return cat

    def reorder_categories(self, ids: Sequence[str]) -> List[str]:
        with self._lock:
            self._categories = _reordered(self._categories, ids)
            return [c.id for c in self._categories]

    # ---- tasks
    def add_task(self, category_id: str, name: Optional[str] = None) -> Task:
        with self._lock:
            cat = self._find_category(category_id)
            task = Task(id=new_id(), category_id=cat.id, name=name or DEFAULT_NAMES["task"])
            cat.tasks.append(task)
            return copy.deepcopy(task)

    def update_task(self, task: Task) -> Task:
        completion = check_completion(task.completion)
        with self._lock:
            _, current = self._find_task(task.id)
            current.name = task.name
            current.description = task.description or ""
            current.public = bool(task.public)
            state = current.completion_state().reconcile([s.completion for s in current.subtasks])
            if not state.is_aggregated:
                state = state.set_directly(completion, owner_id=current.id)
            current.completion = state.value
            return copy.deepcopy(current)

    def delete_task(self, task_id: str) -> Task:
        with self._lock:
            cat, task = self._find_task(task_id)
            cat.tasks.remove(task)
            self._work_logs = [wl for wl in self._work_logs if wl.task_id != task_id]
            return task

    def reorder_tasks(self, category_id: str, ids: Sequence[str]) -> List[str]:
        with self._lock:
            cat = self._find_category(category_id)
            cat.tasks = _reordered(cat.tasks, ids)
            return [t.id for t in cat.tasks]

    def move_task(self, task_id: str, new_category_id: str, new_index: int) -> Task:
        if isinstance(new_index, bool) or not isinstance(new_index, int) or new_index < 0:
            raise InvalidInputError(f"index must be a non-negative integer, got {new_index!r}", field="index")
        with self._lock:
            origin, task = self._find_task(task_id)
            dest = self._find_category(new_category_id)
            origin.tasks.remove(task)
            index = min(new_index, len(dest.tasks))
            dest.tasks.insert(index, task)
            task.category_id = dest.id
            for s in task.subtasks:
                s.category_id = dest.id
            for wl in self._work_logs:
                if wl.task_id == task_id:
                    wl.category_id = dest.id
            return copy.deepcopy(task)

    # ---- subtasks
    def add_subtask(self, task_id: str, name: Optional[str] = None) -> Subtask:
        with self._lock:
            cat, task = self._find_task(task_id)
            sub = Subtask(id=new_id(), task_id=task.id, category_id=cat.id, name=name or DEFAULT_NAMES["subtask"])
            task.subtasks.append(sub)
            self._reconcile(task)
            return copy.deepcopy(sub)

    def update_subtask(self, sub: Subtask) -> Subtask:
        completion = check_completion(sub.completion)
        with self._lock:
            task, current = self._find_subtask(sub.id)
            current.name = sub.name
            current.description = sub.description or ""
            current.completion = completion
            current.public = bool(sub.public)
            self._reconcile(task)
            return copy.deepcopy(current)

    def delete_subtask(self, subtask_id: str) -> Subtask:
        with self._lock:
            task, sub = self._find_subtask(subtask_id)
            task.subtasks.remove(sub)
            self._work_logs = [wl for wl in self._work_logs if wl.subtask_id != subtask_id]
            self._reconcile(task)
            return sub

    def reorder_subtasks(self, task_id: str, ids: Sequence[str]) -> List[str]:
        with self._lock:
            _, task = self._find_task(task_id)
            task.subtasks = _reordered(task.subtasks, ids)
            return [s.id for s in task.subtasks]

    # ---- visibility
    def set_public(self, entity_type: EntityType, entity_id: str, public: bool) -> None:
        if entity_type not in ENTITY_TYPES:
            raise InvalidInputError(f"unknown entity type: {entity_type!r}", field="entity_type")
        with self._lock:
            if entity_type == "category":
                node = self._find_category(entity_id)
            elif entity_type == "task":
                node = self._find_task(entity_id)[1]
            else:
                node = self._find_subtask(entity_id)[1]
            node.public = bool(public)

    # ---- work logs
    def add_work_log_for_task(self, task_id: str, hours_worked: float, work_description: str,
                              completion_estimate: int, created_at: Optional[datetime] = None) -> WorkLog:
        hours_worked = check_hours(hours_worked)
        completion_estimate = check_completion(completion_estimate, field="completion_estimate")
        with self._lock:
            cat, task = self._find_task(task_id)
            state = task.completion_state().set_directly(completion_estimate, owner_id=task_id)
            entry = WorkLog(
                id=new_id(),
                category_id=cat.id,
                task_id=task.id,
                subtask_id=None,
                hours_worked=hours_worked,
                work_description=work_description or "",
                completion_estimate=completion_estimate,
                created_at=(created_at or datetime.now(timezone.utc)).astimezone(timezone.utc),
            )
            self._work_logs.append(entry)
            task.completion = state.value
            return copy.deepcopy(entry)

    def add_work_log_for_subtask(self, subtask_id: str, hours_worked: float, work_description: str,
                                 completion_estimate: int, created_at: Optional[datetime] = None) -> WorkLog:
        hours_worked = check_hours(hours_worked)
        completion_estimate = check_completion(completion_estimate, field="completion_estimate")
        with self._lock:
            task, sub = self._find_subtask(subtask_id)
            entry = WorkLog(
                id=new_id(),
                category_id=sub.category_id,
                task_id=task.id,
                subtask_id=sub.id,
                hours_worked=hours_worked,
                work_description=work_description or "",
                completion_estimate=completion_estimate,
                created_at=(created_at or datetime.now(timezone.utc)).astimezone(timezone.utc),
            )
            self._work_logs.append(entry)
            sub.completion = completion_estimate
            self._reconcile(task)
            return copy.deepcopy(entry)

    def get_work_logs_for_category(self, category_id: str) -> List[WorkLog]:
        with self._lock:
            self._find_category(category_id)
            return self._newest_first([wl for wl in self._work_logs if wl.category_id == category_id])

    def get_work_logs_for_task(self, task_id: str) -> List[WorkLog]:
        with self._lock:
            self._find_task(task_id)
            return self._newest_first([wl for wl in self._work_logs if wl.task_id == task_id])

    def get_work_logs_for_subtask(self, subtask_id: str) -> List[WorkLog]:
        with self._lock:
            self._find_subtask(subtask_id)
            return self._newest_first([wl for wl in self._work_logs if wl.subtask_id == subtask_id])

    # ---- demo data
    def seed(self) -> None:
        """Two sample categories; "Buy Groceries" aggregates to 50."""
        with self._lock:
            work = Category(id=new_id(), name="Work", public=True)
            work.tasks.append(Task(id=new_id(), category_id=work.id, name="Finish Report", completion=20, public=True))

            personal = Category(id=new_id(), name="Personal")
            groceries = Task(id=new_id(), category_id=personal.id, name="Buy Groceries")
            groceries.subtasks = [
                Subtask(id=new_id(), task_id=groceries.id, category_id=personal.id, name="Milk", completion=0),
                Subtask(id=new_id(), task_id=groceries.id, category_id=personal.id, name="Eggs", completion=100),
            ]
            self._reconcile(groceries)
            personal.tasks.append(groceries)

            self._categories.extend([work, personal])
        log.info("Seeded in-memory store with %d categories", len(self._categories))
