"""Tests for task toggling and progress summaries."""
from __future__ import annotations

import pytest

from milestone_ai.services.errors import PlanCoordinateError
from milestone_ai.services.plan_progress import set_task_completed, summarize_progress, toggle_task
from milestone_ai.services.plan_repair import build_fallback_plan


@pytest.fixture()
def plan():
    return build_fallback_plan("Learn Spanish")


def test_toggle_by_index_returns_new_tree(plan) -> None:
    updated = toggle_task(plan, 0, 1, 2, 0)

    assert updated["months"][0]["weeks"][1]["days"][2]["tasks"][0]["completed"] is True
    assert plan["months"][0]["weeks"][1]["days"][2]["tasks"][0]["completed"] is False


def test_toggle_twice_restores_state(plan) -> None:
    twice = toggle_task(toggle_task(plan, 0, 0, 0, 1), 0, 0, 0, 1)

    assert twice == plan


def test_toggle_by_ids(plan) -> None:
    updated = toggle_task(plan, "month-1", "week-1-0", "day-1-0-3", "task-1-0-3-1")

    assert updated["months"][1]["weeks"][0]["days"][3]["tasks"][1]["completed"] is True


def test_set_task_completed_is_explicit(plan) -> None:
    updated = set_task_completed(plan, 0, 0, 0, 0, True)
    again = set_task_completed(updated, 0, 0, 0, 0, True)

    assert again["months"][0]["weeks"][0]["days"][0]["tasks"][0]["completed"] is True


@pytest.mark.parametrize(
    "coordinates",
    [(3, 0, 0, 0), (0, 4, 0, 0), (0, 0, 7, 0), (0, 0, 0, 2), (-1, 0, 0, 0), ("month-9", 0, 0, 0), (True, 0, 0, 0)],
)
def test_unknown_coordinates_raise(plan, coordinates) -> None:
    with pytest.raises(PlanCoordinateError):
        toggle_task(plan, *coordinates)


def test_coordinate_error_is_lookup_error(plan) -> None:
    with pytest.raises(LookupError):
        toggle_task(plan, 5, 0, 0, 0)


def test_progress_counts_and_rounds(plan) -> None:
    updated = toggle_task(plan, 0, 0, 0, 0)

    progress = summarize_progress(updated)

    assert progress.total == 168
    assert progress.completed == 1
    assert progress.percent == 1
    assert progress.months[0].completed == 1
    assert progress.months[0].percent == 2
    assert progress.months[1].completed == 0


def test_progress_of_empty_plan() -> None:
    progress = summarize_progress({"goal": "G", "months": []})

    assert (progress.total, progress.completed, progress.percent) == (0, 0, 0)
    assert progress.months == []
