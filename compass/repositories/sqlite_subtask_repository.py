# Rev 0.1.0
from __future__ import annotations
import sqlite3
from typing import List, Optional, Sequence

from compass.models.entities import Subtask
from .base import SQLiteRepository, new_id

_COLUMNS = "id, task_id, category_id, name, description, completion, public"


class SQLiteSubtaskRepository(SQLiteRepository):
    """
    Subtask rows (always leaves).
    category_id is copied from the parent task on insert.
    """

    @staticmethod
    def _row_to_subtask(row: sqlite3.Row) -> Subtask:
        return Subtask(
            id=row["id"],
            task_id=row["task_id"],
            category_id=row["category_id"],
            name=row["name"],
            description=row["description"] or "",
            completion=int(row["completion"] or 0),
            public=bool(row["public"]),
        )

    # --------------- CRUD ---------------
    def insert(self, *, task_id: str, category_id: str, name: str, sort_order: int) -> Subtask:
        sub_id = new_id()
        self._conn().execute(
            """
            INSERT INTO subtasks(id, task_id, category_id, name, description, completion, public, sort_order)
            VALUES (?, ?, ?, ?, '', 0, 0, ?)
            """,
            (sub_id, task_id, category_id, name, sort_order),
        )
        return Subtask(id=sub_id, task_id=task_id, category_id=category_id, name=name)

    def get(self, subtask_id: str) -> Optional[Subtask]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM subtasks WHERE id = ?", (subtask_id,))
        return self._row_to_subtask(row) if row else None

    def update_fields(self, sub: Subtask) -> bool:
        cur = self._conn().execute(
            """
            UPDATE subtasks
            SET name = ?, description = ?, completion = ?, public = ?
            WHERE id = ?
            """,
            (sub.name, sub.description or "", sub.completion, int(bool(sub.public)), sub.id),
        )
        return cur.rowcount > 0

    def set_completion(self, subtask_id: str, completion: int) -> bool:
        cur = self._conn().execute("UPDATE subtasks SET completion = ? WHERE id = ?", (completion, subtask_id))
        return cur.rowcount > 0

    def set_public(self, subtask_id: str, public: bool) -> bool:
        cur = self._conn().execute("UPDATE subtasks SET public = ? WHERE id = ?", (int(bool(public)), subtask_id))
        return cur.rowcount > 0

    def delete(self, subtask_id: str) -> bool:
        cur = self._conn().execute("DELETE FROM subtasks WHERE id = ?", (subtask_id,))
        return cur.rowcount > 0

    # --------------- listings ---------------
    def list_for_task(self, task_id: str) -> List[Subtask]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM subtasks WHERE task_id = ? ORDER BY sort_order ASC, rowid ASC",
            (task_id,),
        )
        return [self._row_to_subtask(r) for r in rows]

    def list_for_tasks(self, task_ids: Sequence[str]) -> List[Subtask]:
        if not task_ids:
            return []
        marks = ", ".join("?" * len(task_ids))
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM subtasks WHERE task_id IN ({marks}) ORDER BY sort_order ASC, rowid ASC",
            tuple(task_ids),
        )
        return [self._row_to_subtask(r) for r in rows]

    def list_all(self) -> List[Subtask]:
        rows = self._fetch_all(f"SELECT {_COLUMNS} FROM subtasks ORDER BY sort_order ASC, rowid ASC")
        return [self._row_to_subtask(r) for r in rows]

    def completions_for_task(self, task_id: str) -> List[int]:
        rows = self._fetch_all("SELECT completion FROM subtasks WHERE task_id = ?", (task_id,))
        return [int(r[0] or 0) for r in rows]
