# Rev 0.1.0
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from compass.models.entities import WorkLog
from .base import SQLiteRepository, from_unix, new_id, to_unix


class SQLiteWorkLogRepository(SQLiteRepository):
    """
    Append/read entries of the work_logs ledger. There is no update or delete:
    rows only disappear through the ON DELETE CASCADE of their owners.

    Schema expectation:

      work_logs(
        id TEXT PRIMARY KEY,
        category_id TEXT NOT NULL,
        task_id TEXT NOT NULL,
        subtask_id TEXT NULL,
        hours_worked REAL NOT NULL,
        work_description TEXT NOT NULL,
        completion_estimate INTEGER NOT NULL,
        created_at INTEGER NOT NULL      -- unix seconds
      )
    """

    @staticmethod
    def _row_to_work_log(row: sqlite3.Row) -> WorkLog:
        return WorkLog(
            id=row["id"],
            category_id=row["category_id"],
            task_id=row["task_id"],
            subtask_id=row["subtask_id"],
            hours_worked=float(row["hours_worked"]),
            work_description=row["work_description"],
            completion_estimate=int(row["completion_estimate"]),
            created_at=from_unix(row["created_at"]),
        )

    # -------------------------
    # Commands
    # -------------------------
    def insert(
        self,
        *,
        category_id: str,
        task_id: str,
        subtask_id: Optional[str],
        hours_worked: float,
        work_description: str,
        completion_estimate: int,
        created_at: datetime,
    ) -> WorkLog:
        log_id = new_id()
        stamp = to_unix(created_at)
        self._conn().execute(
            """
            INSERT INTO work_logs(
              id, category_id, task_id, subtask_id,
              hours_worked, work_description, completion_estimate, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (log_id, category_id, task_id, subtask_id,
             hours_worked, work_description, completion_estimate, stamp),
        )
        return WorkLog(
            id=log_id,
            category_id=category_id,
            task_id=task_id,
            subtask_id=subtask_id,
            hours_worked=hours_worked,
            work_description=work_description,
            completion_estimate=completion_estimate,
            created_at=from_unix(stamp),
        )

    # -------------------------
    # Queries
    # -------------------------
    def _list_where(self, column: str, owner_id: str) -> List[WorkLog]:
        """Entries of one owner, newest first; ties fall back to insertion order."""
        rows = self._fetch_all(
            f"""
            SELECT id,
                   category_id,
                   task_id,
                   subtask_id,
                   hours_worked,
                   work_description,
                   completion_estimate,
                   created_at
            FROM work_logs
            WHERE {column} = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (owner_id,),
        )
        return [self._row_to_work_log(r) for r in rows]

    def list_for_category(self, category_id: str) -> List[WorkLog]:
        return self._list_where("category_id", category_id)

    def list_for_task(self, task_id: str) -> List[WorkLog]:
        return self._list_where("task_id", task_id)

    def list_for_subtask(self, subtask_id: str) -> List[WorkLog]:
        return self._list_where("subtask_id", subtask_id)
