# Rev 0.1.0

from __future__ import annotations
import pytest

from compass.repositories import sibling_order
from compass.repositories.sibling_order import SiblingScope


def seed_category(con, cid: str, order: int) -> str:
    con.execute("INSERT INTO categories(id, name, sort_order) VALUES(?,?,?)", (cid, cid.upper(), order))
    return cid


def seed_task(con, tid: str, cid: str, order: int) -> str:
    con.execute(
        "INSERT INTO tasks(id, category_id, name, sort_order) VALUES(?,?,?,?)",
        (tid, cid, tid.upper(), order),
    )
    return tid


def orders(con, table: str) -> dict:
    return {r[0]: r[1] for r in con.execute(f"SELECT id, sort_order FROM {table}")}


# --- scope ------------------------------------------------------------------

def test_scope_rejects_unknown_table():
    with pytest.raises(ValueError):
        SiblingScope("work_logs")


def test_scope_where_clause():
    where, params = sibling_order.tasks_of("c1").where(exclude="t9")
    assert where == "category_id = ? AND id <> ?"
    assert params == ("c1", "t9")
    assert sibling_order.CATEGORIES.where() == ("1 = 1", ())


# --- reads tolerate gaps ------------------------------------------------------

def test_sibling_ids_follow_sort_order_with_gaps(db):
    with db.transaction() as con:
        seed_category(con, "c", 0)
        seed_task(con, "a", "c", 10)
        seed_task(con, "b", "c", -3)
        seed_task(con, "d", "c", 7)
        assert sibling_order.sibling_ids(con, sibling_order.tasks_of("c")) == ["b", "d", "a"]


def test_next_and_front_order(db):
    with db.transaction() as con:
        assert sibling_order.next_order(con, sibling_order.CATEGORIES) == 0
        assert sibling_order.front_order(con, sibling_order.CATEGORIES) == 0
        seed_category(con, "x", 4)
        seed_category(con, "y", 9)
        assert sibling_order.next_order(con, sibling_order.CATEGORIES) == 10
        assert sibling_order.front_order(con, sibling_order.CATEGORIES) == 3


# --- reorder ------------------------------------------------------------------

def test_reorder_rewrites_dense(db):
    with db.transaction() as con:
        for cid, order in (("a", 5), ("b", 40), ("c", -2)):
            seed_category(con, cid, order)
        final = sibling_order.reorder(con, sibling_order.CATEGORIES, ["b", "a", "c"])
        assert final == ["b", "a", "c"]
        assert orders(con, "categories") == {"b": 0, "a": 1, "c": 2}


def test_reorder_appends_omitted_in_previous_order(db):
    with db.transaction() as con:
        for i, cid in enumerate("abcd"):
            seed_category(con, cid, i)
        final = sibling_order.reorder(con, sibling_order.CATEGORIES, ["c"])
        assert final == ["c", "a", "b", "d"]


def test_reorder_skips_duplicates_and_foreign_ids(db):
    with db.transaction() as con:
        seed_category(con, "c1", 0)
        seed_category(con, "c2", 1)
        seed_task(con, "t1", "c1", 0)
        seed_task(con, "t2", "c1", 1)
        seed_task(con, "other", "c2", 0)
        final = sibling_order.reorder(con, sibling_order.tasks_of("c1"), ["t2", "nope", "other", "t2", "t1"])
        assert final == ["t2", "t1"]
        # the foreign sibling is untouched
        assert orders(con, "tasks")["other"] == 0


def test_reorder_is_a_permutation(db):
    with db.transaction() as con:
        for i, cid in enumerate("abcde"):
            seed_category(con, cid, i * 3)
        final = sibling_order.reorder(con, sibling_order.CATEGORIES, ["e", "x", "a", "e"])
        assert sorted(final) == list("abcde")
        assert sorted(orders(con, "categories").values()) == [0, 1, 2, 3, 4]


# --- open_slot ------------------------------------------------------------------

@pytest.mark.parametrize("index,expected_slot,expected_order", [
    (0, 0, ["new", "a", "b"]),
    (1, 1, ["a", "new", "b"]),
    (2, 2, ["a", "b", "new"]),
    (99, 2, ["a", "b", "new"]),
])
def test_open_slot_clamps_and_shifts(db, index, expected_slot, expected_order):
    with db.transaction() as con:
        seed_category(con, "c", 0)
        seed_task(con, "a", "c", 3)
        seed_task(con, "b", "c", 8)
        seed_task(con, "new", "c", 100)
        scope = sibling_order.tasks_of("c")
        slot = sibling_order.open_slot(con, scope, index, exclude="new")
        assert slot == expected_slot
        con.execute("UPDATE tasks SET sort_order = ? WHERE id = 'new'", (slot,))
        assert sibling_order.sibling_ids(con, scope) == expected_order
