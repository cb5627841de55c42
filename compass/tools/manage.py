# File: compass/tools/manage.py
# Usage examples:
#   python -m compass.tools.manage init
#   python -m compass.tools.manage verify --db /path/to/compass.db
#   python -m compass.tools.manage seed
#   python -m compass.tools.manage tree --public
#
# Notes:
# - DB path defaults to env COMPASS_DB, then settings.json, then the XDG data dir
# - init applies compass/data/schema.sql (idempotent)
# - seed adds the sample Work/Personal tree through the engine

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from compass.app_context import AppContext
from compass.models.entities import Category
from compass.utils.config import load_settings
from compass.utils.logging_setup import setup_logging

REQUIRED_TABLES = ["categories", "tasks", "subtasks", "work_logs"]


def cmd_init(ctx: AppContext, out: TextIO) -> int:
    # AppContext.create already applied the schema
    print(f"✓ Schema applied to {ctx.db_path}", file=out)
    return 0


def cmd_verify(ctx: AppContext, out: TextIO) -> int:
    con = ctx.db.conn
    names = {
        r[0]
        for r in con.execute("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%';")
    }
    missing = [t for t in REQUIRED_TABLES if t not in names]
    if missing:
        print("❌ Missing tables:", ", ".join(missing), file=out)
        return 2

    for table in ("categories", "tasks", "subtasks"):
        cols = ctx.db.columns(table)
        if not {"sort_order", "public"} <= cols:
            print(f"❌ {table} lacks sort_order/public columns", file=out)
            return 3

    (fk,) = con.execute("PRAGMA foreign_keys;").fetchone()
    if int(fk) != 1:
        print("❌ foreign_keys is OFF", file=out)
        return 4

    (mode,) = con.execute("PRAGMA journal_mode;").fetchone()
    if str(mode).lower() != "wal":
        print(f"⚠️  journal_mode is not WAL (got {mode})", file=out)

    print("✓ Verification passed.", file=out)
    return 0


def cmd_seed(ctx: AppContext, out: TextIO) -> int:
    engine = ctx.engine
    personal = engine.add_category("Personal")
    groceries = engine.add_task(personal.id, "Buy Groceries")
    engine.add_subtask(groceries.id, "Milk")
    eggs = engine.add_subtask(groceries.id, "Eggs")
    eggs.completion = 100
    engine.update_subtask(eggs)   # groceries -> 50

    # added last so it surfaces first
    work = engine.add_category("Work")
    work.public = True
    engine.update_category(work)
    report = engine.add_task(work.id, "Finish Report")
    report.public = True
    engine.update_task(report)
    engine.add_work_log_for_task(report.id, 1.5, "Outline and first draft", 20)

    print(f"✓ Seeded {ctx.db_path}", file=out)
    return 0


def render_tree(categories: List[Category]) -> str:
    lines: List[str] = []
    for c in categories:
        flag = "" if c.public else " (private)"
        lines.append(f"{c.name} [{c.average_completion()}%]{flag}")
        for t in c.tasks:
            flag = "" if t.public else " (private)"
            lines.append(f"  - {t.name} [{t.completion}%]{flag}")
            for s in t.subtasks:
                flag = "" if s.public else " (private)"
                lines.append(f"      · {s.name} [{s.completion}%]{flag}")
    return "\n".join(lines)


def cmd_tree(ctx: AppContext, out: TextIO, *, public_view: bool) -> int:
    cats = ctx.engine.get_visible_categories(is_authenticated=not public_view)
    print(render_tree(cats) or "(empty)", file=out)
    return 0


def parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="compass-manage", description="Database tooling for compass")
    p.add_argument("--db", type=Path, default=None, help="Path to SQLite DB (default: $COMPASS_DB or settings)")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init", help="Create tables if missing")
    sub.add_parser("verify", help="Lightweight structural verification")
    sub.add_parser("seed", help="Add the sample tree")
    s_tree = sub.add_parser("tree", help="Print the tree")
    s_tree.add_argument("--public", action="store_true", help="Show only what anonymous readers see")

    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None, out: TextIO = sys.stdout) -> int:
    ns = parse_args(sys.argv[1:] if argv is None else argv)
    settings = load_settings()
    setup_logging(level_name=ns.log_level or settings["logging"]["level"])
    with AppContext.create(ns.db, settings=settings) as ctx:
        if ns.cmd == "init":
            return cmd_init(ctx, out)
        if ns.cmd == "verify":
            return cmd_verify(ctx, out)
        if ns.cmd == "seed":
            return cmd_seed(ctx, out)
        if ns.cmd == "tree":
            return cmd_tree(ctx, out, public_view=ns.public)
    raise SystemExit(1)


if __name__ == "__main__":
    raise SystemExit(main())
