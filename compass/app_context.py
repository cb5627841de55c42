# compass application context
# Rev 0.1.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .repositories.db import Database
from .services.tree_engine import TreeEngine
from .services.work_log_ledger import WorkLogLedger
from .utils.config import load_settings
from .utils.logging_setup import get_logger


@dataclass
class AppContext:
    """Explicit handle to the shared store, passed to every caller."""
    db_path: Path
    db: Database
    ledger: WorkLogLedger
    engine: TreeEngine

    @classmethod
    def create(cls, db_path: Optional[Path | str] = None, *, settings: Optional[Dict[str, Any]] = None) -> "AppContext":
        """Open the DB, apply the schema, wire ledger and engine."""
        log = get_logger("AppContext")
        settings = settings or load_settings()
        db_cfg = settings["database"]
        path = Path(db_path) if db_path is not None else Path(db_cfg["path"])
        db = Database(path, wal=bool(db_cfg.get("wal", True)),
                      busy_timeout_ms=int(db_cfg.get("busy_timeout_ms", 5000)))
        db.apply_schema()
        ledger = WorkLogLedger(db)
        engine = TreeEngine(db, ledger)
        log.info("AppContext initialized with DB=%s", path)
        return cls(db_path=path, db=db, ledger=ledger, engine=engine)

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
