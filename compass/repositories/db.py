# Rev 0.1.0

"""SQLite connection & transaction handling (Rev 0.1.0)
- WAL mode, foreign_keys=ON, busy_timeout
- One writer connection; writers are serialized by a lock with a bounded wait
- Readers borrow a connection from a bounded idle pool and read inside a
  deferred transaction, so every read sees a single committed snapshot
- Applies compass/data/schema.sql on open (idempotent)
"""
from __future__ import annotations
import logging
import queue
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from compass.models.errors import TransactionFailure
from compass.utils.paths import DB_PATH, SCHEMA_PATH

log = logging.getLogger(__name__)

MEMORY = ":memory:"
MAX_IDLE_READERS = 8

# Columns added after the first released layout; (table, column, definition)
_LATE_COLUMNS = (
    ("categories", "public", "INTEGER NOT NULL DEFAULT 0"),
    ("tasks", "public", "INTEGER NOT NULL DEFAULT 0"),
    ("subtasks", "public", "INTEGER NOT NULL DEFAULT 0"),
)


class Database:
    def __init__(self, path: Path | str = DB_PATH, *, wal: bool = True, busy_timeout_ms: int = 5000,
                 max_idle_readers: int = MAX_IDLE_READERS) -> None:
        self.path = str(path)
        self.busy_timeout_ms = int(busy_timeout_ms)
        self._in_memory = self.path == MEMORY
        if not self._in_memory:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._write_lock = threading.Lock()
        self._idle: "queue.LifoQueue[sqlite3.Connection]" = queue.LifoQueue(maxsize=max(1, int(max_idle_readers)))
        self._readers: List[sqlite3.Connection] = []   # every open reader, idle or borrowed
        self._readers_lock = threading.Lock()
        self._closed = False

        self.conn = self._connect()
        if wal and not self._in_memory:
            self.conn.execute("PRAGMA journal_mode=WAL;")
        log.info("SQLite open %s (wal=%s, busy_timeout=%sms)", self.path, wal, self.busy_timeout_ms)

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(
            self.path,
            isolation_level=None,   # transactions are managed explicitly
            check_same_thread=False,
            timeout=self.busy_timeout_ms / 1000,
        )
        con.row_factory = sqlite3.Row
        con.execute("PRAGMA foreign_keys=ON;")
        con.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms};")
        return con

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with self._readers_lock:
            readers, self._readers = self._readers, []
        for con in readers:
            con.close()
        self.conn.close()
        log.info("SQLite closed %s", self.path)

    # --- schema -------------------------------------------------------------

    def apply_schema(self, schema_path: Path = SCHEMA_PATH) -> None:
        sql = Path(schema_path).read_text(encoding="utf-8")
        with self._locked():
            try:
                self.conn.executescript(sql)
                for table, column, definition in _LATE_COLUMNS:
                    if column not in self.columns(table):
                        log.info("Adding column %s.%s", table, column)
                        self.conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
            except sqlite3.Error as exc:
                raise TransactionFailure(f"schema apply failed: {exc}") from exc

    def columns(self, table: str) -> set[str]:
        return {r[1] for r in self.conn.execute(f"PRAGMA table_info({table})").fetchall()}

    # --- transactions -------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._write_lock.acquire(timeout=self.busy_timeout_ms / 1000):
            raise TransactionFailure(
                f"timed out after {self.busy_timeout_ms}ms waiting for the write lock on {self.path}"
            )
        try:
            yield
        finally:
            self._write_lock.release()

    @staticmethod
    def _rollback(con: sqlite3.Connection) -> None:
        if con.in_transaction:
            con.execute("ROLLBACK;")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """One atomic write unit. Any exception rolls everything back.

        sqlite3 errors surface as TransactionFailure; domain errors raised by
        the body propagate unchanged.
        """
        with self._locked():
            con = self.conn
            try:
                con.execute("BEGIN IMMEDIATE;")
            except sqlite3.Error as exc:
                raise TransactionFailure(f"could not begin write transaction: {exc}") from exc
            try:
                yield con
            except sqlite3.Error as exc:
                self._rollback(con)
                raise TransactionFailure(str(exc)) from exc
            except BaseException:
                self._rollback(con)
                raise
            try:
                con.execute("COMMIT;")
            except sqlite3.Error as exc:
                self._rollback(con)
                raise TransactionFailure(f"commit failed: {exc}") from exc

    @property
    def open_readers(self) -> int:
        with self._readers_lock:
            return len(self._readers)

    def _borrow_reader(self) -> sqlite3.Connection:
        try:
            return self._idle.get_nowait()
        except queue.Empty:
            pass
        con = self._connect()
        with self._readers_lock:
            self._readers.append(con)
        return con

    def _return_reader(self, con: sqlite3.Connection) -> None:
        if not self._closed:
            try:
                self._idle.put_nowait(con)
                return
            except queue.Full:
                pass
        with self._readers_lock:
            if con in self._readers:
                self._readers.remove(con)
        con.close()

    @contextmanager
    def snapshot(self) -> Iterator[sqlite3.Connection]:
        """Read-only unit; all queries inside see the same committed state."""
        if self._in_memory:
            # a private in-memory DB has a single connection; share the writer's
            with self._locked():
                try:
                    yield self.conn
                except sqlite3.Error as exc:
                    raise TransactionFailure(str(exc)) from exc
            return

        con = self._borrow_reader()
        try:
            con.execute("BEGIN;")
            yield con
        except sqlite3.Error as exc:
            raise TransactionFailure(str(exc)) from exc
        finally:
            self._rollback(con)
            self._return_reader(con)
