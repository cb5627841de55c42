# Rev 0.1.0

"""Behaviour shared by the SQLite engine and the in-memory store."""
from __future__ import annotations
import pytest

from compass.models.errors import CompletionLockedError, InvalidInputError, NotFoundError
from compass.services.completion import aggregate

MISSING = "00000000-0000-0000-0000-000000000000"


def make_task(store, name="T", completion=None):
    cat = store.add_category("C")
    task = store.add_task(cat.id, name)
    if completion is not None:
        task.completion = completion
        task = store.update_task(task)
    return cat, task


def set_sub(store, sub_id: str, completion: int):
    sub = store.get_subtask(sub_id)
    sub.completion = completion
    return store.update_subtask(sub)


def assert_tree_consistent(store):
    """Aggregated tasks hold the floor mean of their subtasks; ids are unique."""
    seen = set()
    for cat in store.get_categories():
        for node in [cat, *cat.tasks, *(s for t in cat.tasks for s in t.subtasks)]:
            assert node.id not in seen
            seen.add(node.id)
        for task in cat.tasks:
            assert task.category_id == cat.id
            for sub in task.subtasks:
                assert sub.task_id == task.id
                assert sub.category_id == cat.id
            if task.subtasks:
                assert task.completion == aggregate(s.completion for s in task.subtasks)
            assert 0 <= task.completion <= 100


# --- defaults ---------------------------------------------------------------

def test_new_nodes_get_default_names_and_are_private(store):
    cat = store.add_category()
    task = store.add_task(cat.id)
    sub = store.add_subtask(task.id)
    assert (cat.name, task.name, sub.name) == ("New Category", "New Task", "New Subtask")
    assert not (cat.public or task.public or sub.public)
    assert sub.category_id == cat.id


def test_new_category_goes_first(store):
    first = store.add_category("first")
    second = store.add_category("second")
    assert [c.id for c in store.get_categories()] == [second.id, first.id]


def test_tasks_and_subtasks_append(store):
    cat = store.add_category("C")
    t1 = store.add_task(cat.id, "one")
    t2 = store.add_task(cat.id, "two")
    s1 = store.add_subtask(t1.id, "a")
    s2 = store.add_subtask(t1.id, "b")
    assert [t.id for t in store.get_category(cat.id).tasks] == [t1.id, t2.id]
    assert [s.id for s in store.get_task(t1.id).subtasks] == [s1.id, s2.id]


# --- completion aggregation ---------------------------------------------------

def test_first_subtask_overrides_task_completion(store):
    _, task = make_task(store, completion=70)
    store.add_subtask(task.id)
    assert store.get_task(task.id).completion == 0


def test_subtask_update_reaggregates(store):
    _, task = make_task(store)
    milk = store.add_subtask(task.id, "Milk")
    eggs = store.add_subtask(task.id, "Eggs")
    set_sub(store, eggs.id, 100)
    assert store.get_task(task.id).completion == 50
    set_sub(store, milk.id, 33)
    assert store.get_task(task.id).completion == 66    # floor(133 / 2)
    assert_tree_consistent(store)


def test_deleting_last_subtask_keeps_value(store):
    _, task = make_task(store)
    sub = store.add_subtask(task.id)
    set_sub(store, sub.id, 80)
    store.delete_subtask(sub.id)
    after = store.get_task(task.id)
    assert after.subtasks == []
    assert after.completion == 80
    # independent again: direct writes stick
    after.completion = 15
    assert store.update_task(after).completion == 15


def test_deleting_one_subtask_reaggregates(store):
    _, task = make_task(store)
    a = store.add_subtask(task.id)
    b = store.add_subtask(task.id)
    set_sub(store, a.id, 100)
    store.delete_subtask(b.id)
    assert store.get_task(task.id).completion == 100


def test_update_task_ignores_completion_while_aggregated(store):
    _, task = make_task(store)
    sub = store.add_subtask(task.id)
    set_sub(store, sub.id, 40)
    current = store.get_task(task.id)
    current.name = "renamed"
    current.completion = 95
    updated = store.update_task(current)
    assert updated.name == "renamed"
    assert updated.completion == 40


@pytest.mark.parametrize("bad", [-1, 101, 3.5])
def test_update_rejects_out_of_range_completion(store, bad):
    _, task = make_task(store, completion=10)
    sub = store.add_subtask(task.id)
    sub.completion = bad
    with pytest.raises(InvalidInputError):
        store.update_subtask(sub)
    assert store.get_subtask(sub.id).completion == 0


def test_category_average_completion(store):
    cat = store.add_category("C")
    for value in (10, 20, 35):
        t = store.add_task(cat.id)
        t.completion = value
        store.update_task(t)
    assert store.get_category(cat.id).average_completion() == 21


# --- ordering -------------------------------------------------------------------

def test_reorder_tasks_is_permutation_with_omitted_appended(store):
    cat = store.add_category("C")
    ids = [store.add_task(cat.id, str(i)).id for i in range(4)]
    final = store.reorder_tasks(cat.id, [ids[2], "bogus", ids[0], ids[2]])
    assert final == [ids[2], ids[0], ids[1], ids[3]]
    assert [t.id for t in store.get_category(cat.id).tasks] == final


def test_reorder_categories_and_subtasks(store):
    c1, c2, c3 = (store.add_category(n) for n in ("a", "b", "c"))
    assert store.reorder_categories([c1.id, c2.id, c3.id]) == [c1.id, c2.id, c3.id]
    assert [c.id for c in store.get_categories()] == [c1.id, c2.id, c3.id]

    task = store.add_task(c1.id)
    s1, s2 = store.add_subtask(task.id), store.add_subtask(task.id)
    assert store.reorder_subtasks(task.id, [s2.id]) == [s2.id, s1.id]


def test_reorder_unknown_parent(store):
    with pytest.raises(NotFoundError):
        store.reorder_tasks(MISSING, [])
    with pytest.raises(NotFoundError):
        store.reorder_subtasks(MISSING, [])


# --- move ---------------------------------------------------------------------------

def test_move_task_between_categories(store):
    src = store.add_category("src")
    dst = store.add_category("dst")
    moving = store.add_task(src.id, "moving")
    sub = store.add_subtask(moving.id)
    store.add_work_log_for_subtask(sub.id, 1.0, "w", 30)
    d1 = store.add_task(dst.id, "d1")
    d2 = store.add_task(dst.id, "d2")

    moved = store.move_task(moving.id, dst.id, 1)
    assert moved.category_id == dst.id
    assert [t.id for t in store.get_category(dst.id).tasks] == [d1.id, moving.id, d2.id]
    assert store.get_category(src.id).tasks == []
    assert store.get_subtask(sub.id).category_id == dst.id
    assert [w.task_id for w in store.get_work_logs_for_category(dst.id)] == [moving.id]
    assert store.get_work_logs_for_category(src.id) == []
    assert_tree_consistent(store)


def test_move_task_clamps_index(store):
    cat = store.add_category("C")
    a = store.add_task(cat.id, "a")
    b = store.add_task(cat.id, "b")
    store.move_task(a.id, cat.id, 50)
    assert [t.id for t in store.get_category(cat.id).tasks] == [b.id, a.id]


def test_move_task_rejects_negative_index(store):
    _, task = make_task(store)
    with pytest.raises(InvalidInputError):
        store.move_task(task.id, task.category_id, -1)


def test_move_task_missing_destination(store):
    _, task = make_task(store)
    with pytest.raises(NotFoundError):
        store.move_task(task.id, MISSING, 0)
    assert store.get_task(task.id).category_id == task.category_id


# --- deletes ------------------------------------------------------------------------

def test_delete_category_cascades(store):
    cat, task = make_task(store)
    sub = store.add_subtask(task.id)
    store.add_work_log_for_subtask(sub.id, 1.0, "w", 10)
    removed = store.delete_category(cat.id)
    assert removed.id == cat.id
    for getter, node_id in ((store.get_category, cat.id), (store.get_task, task.id), (store.get_subtask, sub.id)):
        with pytest.raises(NotFoundError):
            getter(node_id)


def test_delete_task_removes_its_logs(store):
    cat, task = make_task(store)
    other = store.add_task(cat.id)
    store.add_work_log_for_task(task.id, 1.0, "gone", 10)
    store.add_work_log_for_task(other.id, 2.0, "kept", 20)
    store.delete_task(task.id)
    assert [w.work_description for w in store.get_work_logs_for_category(cat.id)] == ["kept"]


@pytest.mark.parametrize("method", [
    "get_category", "get_task", "get_subtask",
    "delete_category", "delete_task", "delete_subtask",
    "get_work_logs_for_category", "get_work_logs_for_task", "get_work_logs_for_subtask",
])
def test_missing_ids_raise_not_found(store, method):
    with pytest.raises(NotFoundError):
        getattr(store, method)(MISSING)


def test_add_under_missing_parent(store):
    with pytest.raises(NotFoundError):
        store.add_task(MISSING)
    with pytest.raises(NotFoundError):
        store.add_subtask(MISSING)


# --- visibility flag -------------------------------------------------------------------

def test_set_public(store):
    cat, task = make_task(store)
    store.set_public("category", cat.id, True)
    store.set_public("task", task.id, True)
    assert store.get_category(cat.id).public
    assert store.get_task(task.id).public
    store.set_public("task", task.id, False)
    assert not store.get_task(task.id).public


def test_set_public_errors(store):
    with pytest.raises(InvalidInputError):
        store.set_public("project", MISSING, True)
    with pytest.raises(NotFoundError):
        store.set_public("subtask", MISSING, True)


# --- work logs ---------------------------------------------------------------------------

def test_task_log_sets_completion(store):
    _, task = make_task(store)
    entry = store.add_work_log_for_task(task.id, 2.5, "draft", 60)
    assert entry.subtask_id is None
    assert entry.hours_worked == 2.5
    assert store.get_task(task.id).completion == 60


def test_task_log_rejected_when_aggregated(store):
    cat, task = make_task(store)
    store.add_subtask(task.id)
    with pytest.raises(CompletionLockedError):
        store.add_work_log_for_task(task.id, 1.0, "nope", 90)
    assert store.get_work_logs_for_category(cat.id) == []
    assert store.get_task(task.id).completion == 0


def test_subtask_log_reaggregates_parent(store):
    _, task = make_task(store)
    a = store.add_subtask(task.id)
    store.add_subtask(task.id)
    store.add_work_log_for_subtask(a.id, 1.0, "half", 80)
    assert store.get_subtask(a.id).completion == 80
    assert store.get_task(task.id).completion == 40
    assert_tree_consistent(store)


@pytest.mark.parametrize("hours,estimate", [(-1.0, 10), (float("nan"), 10), (1.0, 101), (1.0, -5)])
def test_invalid_log_values(store, hours, estimate):
    cat, task = make_task(store)
    with pytest.raises(InvalidInputError):
        store.add_work_log_for_task(task.id, hours, "bad", estimate)
    assert store.get_work_logs_for_category(cat.id) == []


def test_log_views_are_scoped_and_newest_first(store):
    cat, t1 = make_task(store)
    t2 = store.add_task(cat.id)
    sub = store.add_subtask(t2.id)
    first = store.add_work_log_for_task(t1.id, 1.0, "first", 10)
    second = store.add_work_log_for_subtask(sub.id, 1.0, "second", 20)
    third = store.add_work_log_for_task(t1.id, 1.0, "third", 30)

    assert [w.id for w in store.get_work_logs_for_category(cat.id)] == [third.id, second.id, first.id]
    assert [w.id for w in store.get_work_logs_for_task(t1.id)] == [third.id, first.id]
    assert [w.id for w in store.get_work_logs_for_task(t2.id)] == [second.id]
    assert [w.id for w in store.get_work_logs_for_subtask(sub.id)] == [second.id]


def test_task_log_accepted_again_once_subtasks_are_gone(store):
    _, task = make_task(store)
    sub = store.add_subtask(task.id)
    with pytest.raises(CompletionLockedError):
        store.add_work_log_for_task(task.id, 1.0, "locked", 90)
    store.delete_subtask(sub.id)
    store.add_work_log_for_task(task.id, 1.0, "free again", 90)
    assert store.get_task(task.id).completion == 90


def test_move_task_to_front_of_populated_category(store):
    src = store.add_category("src")
    dst = store.add_category("dst")
    moving = store.add_task(src.id, "moving")
    d1 = store.add_task(dst.id, "d1")
    d2 = store.add_task(dst.id, "d2")

    store.move_task(moving.id, dst.id, 0)
    assert [t.id for t in store.get_category(dst.id).tasks] == [moving.id, d1.id, d2.id]
    assert moving.id not in [t.id for t in store.get_category(src.id).tasks]
