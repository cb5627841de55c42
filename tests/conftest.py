# Rev 0.1.0

"""Pytest fixtures for compass (Rev 0.1.0)"""
from __future__ import annotations
import pytest
from pathlib import Path

from compass.app_context import AppContext
from compass.repositories.db import Database
from compass.repositories.memory_store import InMemoryTreeStore
from compass.services.tree_engine import TreeEngine


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(tmp_path / "test.db", busy_timeout_ms=2000)
    try:
        database.apply_schema()
        yield database
    finally:
        database.close()


@pytest.fixture()
def engine(db: Database) -> TreeEngine:
    return TreeEngine(db)


@pytest.fixture()
def ctx(tmp_path: Path):
    with AppContext.create(tmp_path / "ctx.db") as context:
        yield context


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path: Path):
    """Both TreeStore implementations; contract tests run against each."""
    if request.param == "memory":
        yield InMemoryTreeStore()
        return
    database = Database(tmp_path / "store.db")
    try:
        database.apply_schema()
        yield TreeEngine(database)
    finally:
        database.close()
