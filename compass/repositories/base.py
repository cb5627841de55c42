# Rev 0.1.0
from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any


def new_id() -> str:
    return str(uuid.uuid4())


def to_unix(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.astimezone()  # naive → local
    return int(ts.timestamp())


def from_unix(value: int) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


class SQLiteRepository:
    """Common plumbing for the per-table repositories.

    Repositories are cheap and short-lived: the engine builds them around the
    connection of the transaction (or read snapshot) it is working in.
    """

    def __init__(self, conn: Any):
        self._db_or_conn = conn

    # -------------------------
    # Connection handling
    # -------------------------
    def _conn(self) -> sqlite3.Connection:
        if isinstance(self._db_or_conn, sqlite3.Connection):
            return self._db_or_conn
        raise RuntimeError(
            f"{type(self).__name__}: expected a sqlite3.Connection from "
            "Database.transaction() or Database.snapshot()."
        )

    def _fetch_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        return self._conn().execute(sql, params).fetchone()

    def _fetch_all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        return self._conn().execute(sql, params).fetchall()
