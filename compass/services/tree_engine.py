# Rev 0.1.0

"""Tree consistency engine (Rev 0.1.0)

Every mutation of the category → task → subtask tree goes through here.
Each public method is one transaction: ordering changes, completion
re-aggregation and work-log write-through either all land or none do.
Reads run in a snapshot and never observe a half-applied mutation.
"""
from __future__ import annotations
import logging
import sqlite3
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from compass.models.entities import Category, Subtask, Task, WorkLog
from compass.models.errors import InvalidInputError, NotFoundError
from compass.models.types import ENTITY_TYPES, EntityType
from compass.repositories import sibling_order
from compass.repositories.db import Database
from compass.repositories.sqlite_category_repository import SQLiteCategoryRepository
from compass.repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from compass.repositories.sqlite_task_repository import SQLiteTaskRepository
from compass.services.completion import Completion, check_completion
from compass.services.visibility import (
    filter_category,
    filter_task,
    filter_tree,
    filter_work_logs,
    is_effectively_visible,
)
from compass.services.work_log_ledger import WorkLogLedger

log = logging.getLogger(__name__)

DEFAULT_NAMES: Dict[str, str] = {
    "category": "New Category",
    "task": "New Task",
    "subtask": "New Subtask",
}


class TreeEngine:
    def __init__(self, db: Database, ledger: Optional[WorkLogLedger] = None):
        self._db = db
        self.ledger = ledger or WorkLogLedger(db)

    # ------------------------------------------------------------------
    # loading helpers (work on an open connection)
    # ------------------------------------------------------------------
    @staticmethod
    def _require_category(con: sqlite3.Connection, category_id: str) -> Category:
        cat = SQLiteCategoryRepository(con).get(category_id)
        if cat is None:
            raise NotFoundError("category", category_id)
        return cat

    @staticmethod
    def _require_task(con: sqlite3.Connection, task_id: str) -> Task:
        task = SQLiteTaskRepository(con).get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    @staticmethod
    def _require_subtask(con: sqlite3.Connection, subtask_id: str) -> Subtask:
        sub = SQLiteSubtaskRepository(con).get(subtask_id)
        if sub is None:
            raise NotFoundError("subtask", subtask_id)
        return sub

    def _load_task(self, con: sqlite3.Connection, task_id: str) -> Task:
        task = self._require_task(con, task_id)
        task.subtasks = SQLiteSubtaskRepository(con).list_for_task(task_id)
        return task

    def _load_category(self, con: sqlite3.Connection, category_id: str) -> Category:
        cat = self._require_category(con, category_id)
        cat.tasks = SQLiteTaskRepository(con).list_for_category(category_id)
        subs_by_task: Dict[str, List[Subtask]] = {}
        for sub in SQLiteSubtaskRepository(con).list_for_tasks([t.id for t in cat.tasks]):
            subs_by_task.setdefault(sub.task_id, []).append(sub)
        for t in cat.tasks:
            t.subtasks = subs_by_task.get(t.id, [])
        return cat

    @staticmethod
    def _load_tree(con: sqlite3.Connection) -> List[Category]:
        categories = SQLiteCategoryRepository(con).list_all()
        tasks = SQLiteTaskRepository(con).list_all()
        subtasks = SQLiteSubtaskRepository(con).list_all()

        subs_by_task: Dict[str, List[Subtask]] = {}
        for sub in subtasks:
            subs_by_task.setdefault(sub.task_id, []).append(sub)
        tasks_by_cat: Dict[str, List[Task]] = {}
        for t in tasks:
            t.subtasks = subs_by_task.get(t.id, [])
            tasks_by_cat.setdefault(t.category_id, []).append(t)
        for c in categories:
            c.tasks = tasks_by_cat.get(c.id, [])
        return categories

    @staticmethod
    def _reconcile_task(con: sqlite3.Connection, task_id: str) -> Completion:
        """Bring a task's stored completion in line with its current subtasks."""
        tasks = SQLiteTaskRepository(con)
        task = tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        children = SQLiteSubtaskRepository(con).completions_for_task(task_id)
        state = task.completion_state().reconcile(children)
        if state.value != task.completion:
            tasks.set_completion(task_id, state.value)
            log.debug("Task %s completion %d -> %d (%s)", task_id, task.completion, state.value, state.mode.value)
        return state

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get_categories(self) -> List[Category]:
        with self._db.snapshot() as con:
            tree = self._load_tree(con)
        log.debug("Loaded %d categories", len(tree))
        return tree

    def get_category(self, category_id: str) -> Category:
        with self._db.snapshot() as con:
            return self._load_category(con, category_id)

    def get_task(self, task_id: str) -> Task:
        with self._db.snapshot() as con:
            return self._load_task(con, task_id)

    def get_subtask(self, subtask_id: str) -> Subtask:
        with self._db.snapshot() as con:
            return self._require_subtask(con, subtask_id)

    # ---- reads as seen by a possibly anonymous caller
    def get_visible_categories(self, is_authenticated: bool) -> List[Category]:
        return filter_tree(self.get_categories(), is_authenticated)

    def get_visible_category(self, category_id: str, is_authenticated: bool) -> Category:
        cat = filter_category(self.get_category(category_id), is_authenticated)
        if cat is None:
            raise NotFoundError("category", category_id)
        return cat

    def get_visible_task(self, task_id: str, is_authenticated: bool) -> Task:
        with self._db.snapshot() as con:
            task = self._load_task(con, task_id)
            cat = self._require_category(con, task.category_id)
        if not is_effectively_visible(task, [cat], is_authenticated=is_authenticated):
            raise NotFoundError("task", task_id)
        return filter_task(task, is_authenticated)

    def get_visible_subtask(self, subtask_id: str, is_authenticated: bool) -> Subtask:
        with self._db.snapshot() as con:
            sub = self._require_subtask(con, subtask_id)
            task = self._require_task(con, sub.task_id)
            cat = self._require_category(con, sub.category_id)
        if not is_effectively_visible(sub, [task, cat], is_authenticated=is_authenticated):
            raise NotFoundError("subtask", subtask_id)
        return sub

    # ------------------------------------------------------------------
    # categories
    # ------------------------------------------------------------------
    def add_category(self, name: Optional[str] = None) -> Category:
        with self._db.transaction() as con:
            order = sibling_order.front_order(con, sibling_order.CATEGORIES)
            cat = SQLiteCategoryRepository(con).insert(name or DEFAULT_NAMES["category"], order)
        log.info("Added category %s (%r) at sort_order %d", cat.id, cat.name, order)
        return cat

    def update_category(self, cat: Category) -> Category:
        with self._db.transaction() as con:
            if not SQLiteCategoryRepository(con).update_fields(cat):
                raise NotFoundError("category", cat.id)
            updated = self._load_category(con, cat.id)
        log.info("Updated category %s", cat.id)
        return updated

    def delete_category(self, category_id: str) -> Category:
        with self._db.transaction() as con:
            removed = self._load_category(con, category_id)
            SQLiteCategoryRepository(con).delete(category_id)
        log.info("Deleted category %s with %d task(s)", category_id, len(removed.tasks))
        return removed

    def reorder_categories(self, ids: Sequence[str]) -> List[str]:
        with self._db.transaction() as con:
            final = sibling_order.reorder(con, sibling_order.CATEGORIES, ids)
        log.info("Reordered %d categories", len(final))
        return final

    # ------------------------------------------------------------------
    # tasks
    # ------------------------------------------------------------------
    def add_task(self, category_id: str, name: Optional[str] = None) -> Task:
        with self._db.transaction() as con:
            self._require_category(con, category_id)
            scope = sibling_order.tasks_of(category_id)
            order = sibling_order.next_order(con, scope)
            task = SQLiteTaskRepository(con).insert(
                category_id=category_id, name=name or DEFAULT_NAMES["task"], sort_order=order
            )
        log.info("Added task %s to category %s at sort_order %d", task.id, category_id, order)
        return task

    def update_task(self, task: Task) -> Task:
        """Replace name, description, completion and public.

        While the task has subtasks its completion is derived; the caller's
        value is discarded in favour of the aggregate.
        """
        completion = check_completion(task.completion)
        with self._db.transaction() as con:
            current = self._require_task(con, task.id)
            children = SQLiteSubtaskRepository(con).completions_for_task(task.id)
            state = Completion.independent(current.completion).reconcile(children)
            if state.is_aggregated:
                if completion != state.value:
                    log.debug("Task %s is aggregated; ignoring completion %d (keeping %d)",
                              task.id, completion, state.value)
            else:
                state = state.set_directly(completion, owner_id=task.id)
            SQLiteTaskRepository(con).update_fields(task, completion=state.value)
            updated = self._load_task(con, task.id)
        log.info("Updated task %s", task.id)
        return updated

    def delete_task(self, task_id: str) -> Task:
        with self._db.transaction() as con:
            removed = self._load_task(con, task_id)
            SQLiteTaskRepository(con).delete(task_id)
        log.info("Deleted task %s from category %s", task_id, removed.category_id)
        return removed

    def reorder_tasks(self, category_id: str, ids: Sequence[str]) -> List[str]:
        with self._db.transaction() as con:
            self._require_category(con, category_id)
            final = sibling_order.reorder(con, sibling_order.tasks_of(category_id), ids)
        log.info("Reordered %d task(s) in category %s", len(final), category_id)
        return final

    def move_task(self, task_id: str, new_category_id: str, new_index: int) -> Task:
        if isinstance(new_index, bool) or not isinstance(new_index, int) or new_index < 0:
            raise InvalidInputError(f"index must be a non-negative integer, got {new_index!r}", field="index")
        with self._db.transaction() as con:
            task = self._require_task(con, task_id)
            self._require_category(con, new_category_id)
            index = sibling_order.open_slot(
                con, sibling_order.tasks_of(new_category_id), new_index, exclude=task_id
            )
            SQLiteTaskRepository(con).relocate(task_id, category_id=new_category_id, sort_order=index)
            moved = self._load_task(con, task_id)
        log.info("Moved task %s from category %s to %s at index %d",
                 task_id, task.category_id, new_category_id, index)
        return moved

    # ------------------------------------------------------------------
    # subtasks
    # ------------------------------------------------------------------
    def add_subtask(self, task_id: str, name: Optional[str] = None) -> Subtask:
        with self._db.transaction() as con:
            task = self._require_task(con, task_id)
            order = sibling_order.next_order(con, sibling_order.subtasks_of(task_id))
            sub = SQLiteSubtaskRepository(con).insert(
                task_id=task_id,
                category_id=task.category_id,
                name=name or DEFAULT_NAMES["subtask"],
                sort_order=order,
            )
            self._reconcile_task(con, task_id)
        log.info("Added subtask %s to task %s at sort_order %d", sub.id, task_id, order)
        return sub

    def update_subtask(self, sub: Subtask) -> Subtask:
        check_completion(sub.completion)
        with self._db.transaction() as con:
            current = self._require_subtask(con, sub.id)
            SQLiteSubtaskRepository(con).update_fields(sub)
            self._reconcile_task(con, current.task_id)
            updated = self._require_subtask(con, sub.id)
        log.info("Updated subtask %s", sub.id)
        return updated

    def delete_subtask(self, subtask_id: str) -> Subtask:
        with self._db.transaction() as con:
            removed = self._require_subtask(con, subtask_id)
            SQLiteSubtaskRepository(con).delete(subtask_id)
            state = self._reconcile_task(con, removed.task_id)
        log.info("Deleted subtask %s; task %s now %s at %d",
                 subtask_id, removed.task_id, state.mode.value, state.value)
        return removed

    def reorder_subtasks(self, task_id: str, ids: Sequence[str]) -> List[str]:
        with self._db.transaction() as con:
            self._require_task(con, task_id)
            final = sibling_order.reorder(con, sibling_order.subtasks_of(task_id), ids)
        log.info("Reordered %d subtask(s) in task %s", len(final), task_id)
        return final

    # ------------------------------------------------------------------
    # visibility
    # ------------------------------------------------------------------
    def set_public(self, entity_type: EntityType, entity_id: str, public: bool) -> None:
        if entity_type not in ENTITY_TYPES:
            raise InvalidInputError(f"unknown entity type: {entity_type!r}", field="entity_type")
        with self._db.transaction() as con:
            repo = {
                "category": SQLiteCategoryRepository,
                "task": SQLiteTaskRepository,
                "subtask": SQLiteSubtaskRepository,
            }[entity_type](con)
            if not repo.set_public(entity_id, public):
                raise NotFoundError(entity_type, entity_id)
        log.info("%s %s is now %s", entity_type.capitalize(), entity_id, "public" if public else "private")

    # ------------------------------------------------------------------
    # work logs
    # ------------------------------------------------------------------
    def add_work_log_for_task(self, task_id: str, hours_worked: float, work_description: str,
                              completion_estimate: int, created_at: Optional[datetime] = None) -> WorkLog:
        with self._db.transaction() as con:
            return self.ledger.append_for_task(
                con, task_id, hours_worked, work_description, completion_estimate, created_at
            )

    def add_work_log_for_subtask(self, subtask_id: str, hours_worked: float, work_description: str,
                                 completion_estimate: int, created_at: Optional[datetime] = None) -> WorkLog:
        with self._db.transaction() as con:
            entry = self.ledger.append_for_subtask(
                con, subtask_id, hours_worked, work_description, completion_estimate, created_at
            )
            self._reconcile_task(con, entry.task_id)
        return entry

    def get_work_logs_for_category(self, category_id: str) -> List[WorkLog]:
        return self.ledger.for_category(category_id)

    def get_work_logs_for_task(self, task_id: str) -> List[WorkLog]:
        return self.ledger.for_task(task_id)

    def get_work_logs_for_subtask(self, subtask_id: str) -> List[WorkLog]:
        return self.ledger.for_subtask(subtask_id)

    def get_visible_work_logs(self, entity_type: EntityType, entity_id: str,
                              is_authenticated: bool) -> List[WorkLog]:
        """Work logs of a node, limited to entries an anonymous reader may see."""
        if entity_type == "category":
            cat = self.get_visible_category(entity_id, is_authenticated)
            logs = self.get_work_logs_for_category(entity_id)
            task_ids = {t.id for t in cat.tasks}
            subtask_ids = {s.id for t in cat.tasks for s in t.subtasks}
        elif entity_type == "task":
            task = self.get_visible_task(entity_id, is_authenticated)
            logs = self.get_work_logs_for_task(entity_id)
            task_ids = {task.id}
            subtask_ids = {s.id for s in task.subtasks}
        elif entity_type == "subtask":
            sub = self.get_visible_subtask(entity_id, is_authenticated)
            logs = self.get_work_logs_for_subtask(entity_id)
            task_ids, subtask_ids = {sub.task_id}, {sub.id}
        else:
            raise InvalidInputError(f"unknown entity type: {entity_type!r}", field="entity_type")
        if is_authenticated:
            return logs
        return filter_work_logs(logs, task_ids, subtask_ids)
