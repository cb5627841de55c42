# Rev 0.1.0

"""Sibling ordering on the sort_order column.

Siblings are always read in ascending sort_order. Values need not be
contiguous: deletes leave gaps, categories grow downwards from the front.
Every function runs on the caller's connection, inside the caller's
transaction.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

_ORDERED_TABLES = {"categories", "tasks", "subtasks"}


@dataclass(frozen=True)
class SiblingScope:
    """One sibling list: a table, plus the parent it hangs from (if any)."""

    table: str
    parent_column: Optional[str] = None
    parent_id: Optional[str] = None

    def __post_init__(self):
        if self.table not in _ORDERED_TABLES:
            raise ValueError(f"not an ordered table: {self.table}")

    def where(self, exclude: Optional[str] = None) -> Tuple[str, tuple]:
        clauses, params = [], []
        if self.parent_column is not None:
            clauses.append(f"{self.parent_column} = ?")
            params.append(self.parent_id)
        if exclude is not None:
            clauses.append("id <> ?")
            params.append(exclude)
        return (" AND ".join(clauses) or "1 = 1"), tuple(params)


CATEGORIES = SiblingScope("categories")


def tasks_of(category_id: str) -> SiblingScope:
    return SiblingScope("tasks", "category_id", category_id)


def subtasks_of(task_id: str) -> SiblingScope:
    return SiblingScope("subtasks", "task_id", task_id)


def sibling_ids(con: sqlite3.Connection, scope: SiblingScope, *, exclude: Optional[str] = None) -> List[str]:
    where, params = scope.where(exclude)
    rows = con.execute(
        f"SELECT id FROM {scope.table} WHERE {where} ORDER BY sort_order ASC, rowid ASC",
        params,
    ).fetchall()
    return [r[0] for r in rows]


def next_order(con: sqlite3.Connection, scope: SiblingScope) -> int:
    """Slot after the last sibling (0 for the first child)."""
    where, params = scope.where()
    (value,) = con.execute(
        f"SELECT COALESCE(MAX(sort_order), -1) + 1 FROM {scope.table} WHERE {where}", params
    ).fetchone()
    return int(value)


def front_order(con: sqlite3.Connection, scope: SiblingScope) -> int:
    """Slot before the first sibling (0 for the first child)."""
    where, params = scope.where()
    (value,) = con.execute(
        f"SELECT COALESCE(MIN(sort_order), 1) - 1 FROM {scope.table} WHERE {where}", params
    ).fetchone()
    return int(value)


def write_orders(con: sqlite3.Connection, table: str, ordered_ids: Sequence[str], *, start: int = 0) -> None:
    con.executemany(
        f"UPDATE {table} SET sort_order = ? WHERE id = ?",
        [(start + i, sid) for i, sid in enumerate(ordered_ids)],
    )


def reorder(con: sqlite3.Connection, scope: SiblingScope, requested: Iterable[str]) -> List[str]:
    """Rewrite the scope densely as 0..n-1 following ``requested``.

    Siblings missing from ``requested`` keep their previous relative order and
    go after the listed ones. Duplicates keep their first position; ids that
    are not siblings in this scope are skipped. Returns the final order.
    """
    current = sibling_ids(con, scope)
    known = set(current)
    seen: set[str] = set()
    listed: List[str] = []
    foreign: List[str] = []
    for sid in requested:
        if sid in seen:
            continue
        if sid not in known:
            foreign.append(sid)
            continue
        seen.add(sid)
        listed.append(sid)

    omitted = [sid for sid in current if sid not in seen]
    if foreign:
        log.warning("reorder %s: skipping ids outside the sibling set: %s", scope.table, foreign)
    if omitted and listed:
        log.warning("reorder %s: %d sibling(s) not listed, appended after the listed ones",
                    scope.table, len(omitted))

    final = listed + omitted
    write_orders(con, scope.table, final)
    return final


def open_slot(con: sqlite3.Connection, scope: SiblingScope, index: int, *, exclude: Optional[str] = None) -> int:
    """Make room at position ``index`` and return the sort_order to use there.

    Siblings are first renumbered densely (so position and sort_order agree),
    then every sibling at or after ``index`` shifts up by one. ``index`` is
    clamped to the end of the list.
    """
    ids = sibling_ids(con, scope, exclude=exclude)
    write_orders(con, scope.table, ids)
    index = max(0, min(index, len(ids)))
    where, params = scope.where(exclude)
    con.execute(
        f"UPDATE {scope.table} SET sort_order = sort_order + 1 WHERE {where} AND sort_order >= ?",
        (*params, index),
    )
    return index
