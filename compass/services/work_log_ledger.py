# Rev 0.1.0

"""Work-log ledger (Rev 0.1.0)
Append-only effort records against a task or subtask. Appending writes the
entry's completion estimate through to the owner. A task that has subtasks
has a derived completion, so task-level entries for it are rejected.

Reads are newest first; a category's view includes all of its tasks' and
subtasks' entries, a task's view includes its subtasks' entries.
"""
from __future__ import annotations
import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from compass.models.entities import WorkLog
from compass.models.errors import CompletionLockedError, NotFoundError
from compass.models.validation import check_hours
from compass.repositories.db import Database
from compass.repositories.sqlite_category_repository import SQLiteCategoryRepository
from compass.repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from compass.repositories.sqlite_task_repository import SQLiteTaskRepository
from compass.repositories.sqlite_work_log_repository import SQLiteWorkLogRepository
from compass.services.completion import Completion, check_completion

log = logging.getLogger(__name__)


class WorkLogLedger:
    def __init__(self, db: Database):
        self._db = db

    # ---- commands (run inside the caller's transaction)
    def append_for_task(
        self,
        con: sqlite3.Connection,
        task_id: str,
        hours_worked: float,
        work_description: str,
        completion_estimate: int,
        created_at: Optional[datetime] = None,
    ) -> WorkLog:
        hours_worked = check_hours(hours_worked)
        completion_estimate = check_completion(completion_estimate, field="completion_estimate")
        tasks = SQLiteTaskRepository(con)
        task = tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        children = SQLiteSubtaskRepository(con).completions_for_task(task_id)
        state = Completion.independent(task.completion).reconcile(children)
        try:
            state = state.set_directly(completion_estimate, owner_id=task_id)
        except CompletionLockedError:
            log.warning("Rejected work log on task %s: completion is aggregated from subtasks", task_id)
            raise

        entry = SQLiteWorkLogRepository(con).insert(
            category_id=task.category_id,
            task_id=task.id,
            subtask_id=None,
            hours_worked=hours_worked,
            work_description=work_description or "",
            completion_estimate=completion_estimate,
            created_at=created_at or datetime.now(timezone.utc),
        )
        tasks.set_completion(task.id, state.value)
        log.info("Work log %s on task %s: %.2fh, completion -> %d",
                 entry.id, task.id, hours_worked, state.value)
        return entry

    def append_for_subtask(
        self,
        con: sqlite3.Connection,
        subtask_id: str,
        hours_worked: float,
        work_description: str,
        completion_estimate: int,
        created_at: Optional[datetime] = None,
    ) -> WorkLog:
        """Insert the entry and update the subtask; the caller re-aggregates the parent."""
        hours_worked = check_hours(hours_worked)
        completion_estimate = check_completion(completion_estimate, field="completion_estimate")
        subs = SQLiteSubtaskRepository(con)
        sub = subs.get(subtask_id)
        if sub is None:
            raise NotFoundError("subtask", subtask_id)

        entry = SQLiteWorkLogRepository(con).insert(
            category_id=sub.category_id,
            task_id=sub.task_id,
            subtask_id=sub.id,
            hours_worked=hours_worked,
            work_description=work_description or "",
            completion_estimate=completion_estimate,
            created_at=created_at or datetime.now(timezone.utc),
        )
        subs.set_completion(sub.id, completion_estimate)
        log.info("Work log %s on subtask %s: %.2fh, completion -> %d",
                 entry.id, sub.id, hours_worked, completion_estimate)
        return entry

    # ---- queries
    def for_category(self, category_id: str) -> List[WorkLog]:
        with self._db.snapshot() as con:
            if SQLiteCategoryRepository(con).get(category_id) is None:
                raise NotFoundError("category", category_id)
            logs = SQLiteWorkLogRepository(con).list_for_category(category_id)
        log.debug("Category %s has %d work log(s)", category_id, len(logs))
        return logs

    def for_task(self, task_id: str) -> List[WorkLog]:
        with self._db.snapshot() as con:
            if SQLiteTaskRepository(con).get(task_id) is None:
                raise NotFoundError("task", task_id)
            return SQLiteWorkLogRepository(con).list_for_task(task_id)

    def for_subtask(self, subtask_id: str) -> List[WorkLog]:
        with self._db.snapshot() as con:
            if SQLiteSubtaskRepository(con).get(subtask_id) is None:
                raise NotFoundError("subtask", subtask_id)
            return SQLiteWorkLogRepository(con).list_for_subtask(subtask_id)
