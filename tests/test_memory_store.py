# Rev 0.1.0

from __future__ import annotations

from compass.repositories.memory_store import InMemoryTreeStore


def test_seed_tree():
    store = InMemoryTreeStore()
    store.seed()
    work, personal = store.get_categories()
    assert (work.name, work.public) == ("Work", True)
    assert work.tasks[0].completion == 20
    groceries = personal.tasks[0]
    assert [s.name for s in groceries.subtasks] == ["Milk", "Eggs"]
    assert groceries.completion == 50
    assert not personal.public


def test_returned_nodes_are_copies():
    store = InMemoryTreeStore()
    cat = store.add_category("C")
    task = store.add_task(cat.id)
    snapshot = store.get_category(cat.id)
    snapshot.tasks.clear()
    snapshot.name = "changed"
    assert store.get_category(cat.id).name == "C"
    assert [t.id for t in store.get_category(cat.id).tasks] == [task.id]


def test_new_category_after_seed_goes_first():
    store = InMemoryTreeStore()
    store.seed()
    fresh = store.add_category()
    assert store.get_categories()[0].id == fresh.id
