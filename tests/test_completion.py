# tests/test_completion.py
from __future__ import annotations

import pytest

from compass.models.errors import CompletionLockedError, InvalidInputError
from compass.models.types import CompletionMode
from compass.services.completion import Completion, aggregate, check_completion


# --- aggregate ------------------------------------------------------------

@pytest.mark.parametrize(
    "values,expected",
    [
        ([], 0),
        ([0], 0),
        ([100], 100),
        ([0, 100], 50),
        ([33, 34], 33),          # floor of 33.5
        ([10, 20, 30], 20),
        ([99, 100, 100], 99),    # floor of 99.67
    ],
)
def test_aggregate_is_floor_mean(values, expected):
    assert aggregate(values) == expected


def test_aggregate_accepts_generators():
    assert aggregate(v for v in (40, 60)) == 50


# --- check_completion -----------------------------------------------------

@pytest.mark.parametrize("value", [0, 1, 50, 99, 100])
def test_check_completion_accepts_range(value):
    assert check_completion(value) == value


@pytest.mark.parametrize("value", [-1, 101, 50.5, "50", None, True])
def test_check_completion_rejects(value):
    with pytest.raises(InvalidInputError) as ei:
        check_completion(value, field="completion_estimate")
    assert ei.value.field == "completion_estimate"


# --- Completion transitions -----------------------------------------------

def test_independent_becomes_aggregated_when_children_appear():
    state = Completion.independent(70).reconcile([0])
    assert state.mode is CompletionMode.AGGREGATED
    assert state.value == 0


def test_aggregated_tracks_children():
    state = Completion.aggregated(0).reconcile([0, 100])
    assert state == Completion(50, CompletionMode.AGGREGATED)


def test_last_child_removed_keeps_value_and_goes_independent():
    state = Completion.aggregated(50).reconcile([])
    assert state.mode is CompletionMode.INDEPENDENT
    assert state.value == 50


def test_set_directly_on_independent():
    assert Completion.independent(10).set_directly(80).value == 80


def test_set_directly_on_aggregated_is_locked():
    with pytest.raises(CompletionLockedError) as ei:
        Completion.aggregated(40).set_directly(80, owner_id="t-1")
    assert ei.value.task_id == "t-1"
    assert isinstance(ei.value, InvalidInputError)


def test_reconciled_state_guards_direct_writes():
    state = Completion.independent(30).reconcile([20, 40])
    with pytest.raises(CompletionLockedError):
        state.set_directly(90, owner_id="t-2")
    assert state.reconcile([]).set_directly(90).value == 90
