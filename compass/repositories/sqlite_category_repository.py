# Rev 0.1.0
# compass – SQLiteCategoryRepository (Rev 0.1.0)
from __future__ import annotations
import sqlite3
from typing import List, Optional

from compass.models.entities import Category
from .base import SQLiteRepository, new_id

_COLUMNS = "id, name, description, public"


class SQLiteCategoryRepository(SQLiteRepository):
    """
    Top-level categories.
    Handles schema fields: name, description, public, sort_order.
    """

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            public=bool(row["public"]),
        )

    # ---------- public API ----------

    def insert(self, name: str, sort_order: int) -> Category:
        cat_id = new_id()
        self._conn().execute(
            "INSERT INTO categories(id, name, description, public, sort_order) VALUES (?, ?, '', 0, ?)",
            (cat_id, name, sort_order),
        )
        return Category(id=cat_id, name=name)

    def get(self, category_id: str) -> Optional[Category]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM categories WHERE id = ?", (category_id,))
        return self._row_to_category(row) if row else None

    def list_all(self) -> List[Category]:
        rows = self._fetch_all(f"SELECT {_COLUMNS} FROM categories ORDER BY sort_order ASC, rowid ASC")
        return [self._row_to_category(r) for r in rows]

    def update_fields(self, cat: Category) -> bool:
        cur = self._conn().execute(
            "UPDATE categories SET name = ?, description = ?, public = ? WHERE id = ?",
            (cat.name, cat.description or "", int(bool(cat.public)), cat.id),
        )
        return cur.rowcount > 0

    def set_public(self, category_id: str, public: bool) -> bool:
        cur = self._conn().execute(
            "UPDATE categories SET public = ? WHERE id = ?", (int(bool(public)), category_id)
        )
        return cur.rowcount > 0

    def delete(self, category_id: str) -> bool:
        # tasks, subtasks and work_logs follow via ON DELETE CASCADE
        cur = self._conn().execute("DELETE FROM categories WHERE id = ?", (category_id,))
        return cur.rowcount > 0
