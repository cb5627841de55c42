# Rev 0.1.0

"""Visibility filter (Rev 0.1.0)
Authenticated readers see the whole tree. Anonymous readers see a pruned
copy: private categories go first, then private tasks of what is left, then
private subtasks of what is left. Pruning is cumulative top-down, so a node
survives only if it and every ancestor is public. Inputs are never mutated.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Set, Union

from compass.models.entities import Category, Subtask, Task, WorkLog

Node = Union[Category, Task, Subtask]


def is_effectively_visible(node: Node, ancestors: Sequence[Node] = (), *, is_authenticated: bool = False) -> bool:
    if is_authenticated:
        return True
    return bool(node.public) and all(a.public for a in ancestors)


def filter_work_logs(logs: Iterable[WorkLog], task_ids: Set[str], subtask_ids: Set[str]) -> List[WorkLog]:
    """Keep entries whose owning task (and subtask, if any) is visible."""
    out: List[WorkLog] = []
    for wl in logs:
        if wl.task_id not in task_ids:
            continue
        if wl.subtask_id is not None and wl.subtask_id not in subtask_ids:
            continue
        out.append(wl)
    return out


def filter_task(task: Task, is_authenticated: bool) -> Optional[Task]:
    if is_authenticated:
        return task
    if not task.public:
        return None
    subtasks = [replace(s, work_logs=list(s.work_logs)) for s in task.subtasks if s.public]
    visible_subs = {s.id for s in subtasks}
    return replace(
        task,
        subtasks=subtasks,
        work_logs=filter_work_logs(task.work_logs, {task.id}, visible_subs),
    )


def filter_category(cat: Category, is_authenticated: bool) -> Optional[Category]:
    if is_authenticated:
        return cat
    if not cat.public:
        return None
    tasks: List[Task] = []
    for t in cat.tasks:
        kept = filter_task(t, False)
        if kept is not None:
            tasks.append(kept)
    task_ids = {t.id for t in tasks}
    subtask_ids = {s.id for t in tasks for s in t.subtasks}
    return replace(
        cat,
        tasks=tasks,
        work_logs=filter_work_logs(cat.work_logs, task_ids, subtask_ids),
    )


def filter_tree(categories: Iterable[Category], is_authenticated: bool) -> List[Category]:
    if is_authenticated:
        return list(categories)
    out: List[Category] = []
    for cat in categories:
        kept = filter_category(cat, False)
        if kept is not None:
            out.append(kept)
    return out
