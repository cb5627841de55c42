# Rev 0.1.0
from __future__ import annotations

import sqlite3
from typing import List, Optional

from compass.models.entities import Task
from .base import SQLiteRepository, new_id

_COLUMNS = "id, category_id, name, description, completion, public"


class SQLiteTaskRepository(SQLiteRepository):
    """
    Task rows under a category.
    Moving a task also rewrites the denormalized category_id carried by its
    subtasks and work logs.
    """

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            category_id=row["category_id"],
            name=row["name"],
            description=row["description"] or "",
            completion=int(row["completion"] or 0),
            public=bool(row["public"]),
        )

    # -------------------------
    # CRUD
    # -------------------------
    def insert(self, *, category_id: str, name: str, sort_order: int) -> Task:
        task_id = new_id()
        self._conn().execute(
            """
            INSERT INTO tasks(id, category_id, name, description, completion, public, sort_order)
            VALUES (?, ?, ?, '', 0, 0, ?)
            """,
            (task_id, category_id, name, sort_order),
        )
        return Task(id=task_id, category_id=category_id, name=name)

    def get(self, task_id: str) -> Optional[Task]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (task_id,))
        return self._row_to_task(row) if row else None

    def update_fields(self, task: Task, *, completion: int) -> bool:
        cur = self._conn().execute(
            """
            UPDATE tasks
            SET name = ?, description = ?, completion = ?, public = ?
            WHERE id = ?
            """,
            (task.name, task.description or "", completion, int(bool(task.public)), task.id),
        )
        return cur.rowcount > 0

    def set_completion(self, task_id: str, completion: int) -> bool:
        cur = self._conn().execute("UPDATE tasks SET completion = ? WHERE id = ?", (completion, task_id))
        return cur.rowcount > 0

    def set_public(self, task_id: str, public: bool) -> bool:
        cur = self._conn().execute("UPDATE tasks SET public = ? WHERE id = ?", (int(bool(public)), task_id))
        return cur.rowcount > 0

    def relocate(self, task_id: str, *, category_id: str, sort_order: int) -> None:
        con = self._conn()
        con.execute(
            "UPDATE tasks SET category_id = ?, sort_order = ? WHERE id = ?",
            (category_id, sort_order, task_id),
        )
        con.execute("UPDATE subtasks SET category_id = ? WHERE task_id = ?", (category_id, task_id))
        con.execute("UPDATE work_logs SET category_id = ? WHERE task_id = ?", (category_id, task_id))

    def delete(self, task_id: str) -> bool:
        cur = self._conn().execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cur.rowcount > 0

    # -------------------------
    # Listings
    # -------------------------
    def list_for_category(self, category_id: str) -> List[Task]:
        rows = self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM tasks
            WHERE category_id = ?
            ORDER BY sort_order ASC, rowid ASC
            """,
            (category_id,),
        )
        return [self._row_to_task(r) for r in rows]

    def list_all(self) -> List[Task]:
        rows = self._fetch_all(f"SELECT {_COLUMNS} FROM tasks ORDER BY sort_order ASC, rowid ASC")
        return [self._row_to_task(r) for r in rows]
