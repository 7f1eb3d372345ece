"""Tests for plan normalization helpers."""
from __future__ import annotations

import copy
import json

import pytest

from milestone_ai.services.plan_normalizer import (
    MAX_COPY_DEPTH,
    coerce_completed,
    copy_json,
    iter_tasks,
    new_node_id,
    normalize_plan,
    plan_shape,
)


@pytest.mark.parametrize("value", [None, "false", "False", 0, False, "", "no", 0.0, []])
def test_falsy_completion_values(value) -> None:
    assert coerce_completed(value) is False


@pytest.mark.parametrize("value", [True, 1, "true", "TRUE", " yes ", "done", 2, {"x": 1}])
def test_truthy_completion_values(value) -> None:
    assert coerce_completed(value) is True


def test_new_node_id_is_prefixed_and_unique() -> None:
    first = new_node_id("week")
    second = new_node_id("week")

    assert first.startswith("week-")
    assert first != second


def test_normalize_backfills_ids_titles_and_completion() -> None:
    raw = {
        "months": [
            {
                "weeks": [
                    {
                        "title": "",
                        "days": [
                            {"tasks": [{"title": "Read", "completed": "false"}, {"completed": 1}]},
                        ],
                    }
                ]
            }
        ]
    }

    plan = normalize_plan(raw, "Learn")

    month = plan["months"][0]
    week = month["weeks"][0]
    day = week["days"][0]
    assert plan["goal"] == "Learn"
    assert month["title"] == "Month 1"
    assert week["title"] == "Week 1"
    assert day["title"] == "Day 1"
    assert [task["title"] for task in day["tasks"]] == ["Read", "Task 2"]
    assert [task["completed"] for task in day["tasks"]] == [False, True]
    assert all(node["id"] for node in (month, week, day, *day["tasks"]))


def test_normalize_is_idempotent() -> None:
    once = normalize_plan({"months": [{"weeks": [{"days": [{"tasks": [{}]}]}]}]}, "G")
    twice = normalize_plan(once)

    assert twice == once


def test_normalize_does_not_mutate_input() -> None:
    raw = {"goal": "G", "months": [{"title": "M", "weeks": None}]}
    snapshot = copy.deepcopy(raw)

    normalize_plan(raw)

    assert raw == snapshot


def test_normalize_drops_non_dict_children_and_keeps_extra_keys() -> None:
    raw = {"months": [{"title": "M", "note": "keep", "weeks": ["junk", 3, {"title": "W"}]}, "junk"]}

    plan = normalize_plan(raw)

    assert len(plan["months"]) == 1
    assert plan["months"][0]["note"] == "keep"
    assert [week["title"] for week in plan["months"][0]["weeks"]] == ["W"]
    assert plan["goal"] == ""


@pytest.mark.parametrize("garbage", [None, [], "text", 42, {"months": "nope"}])
def test_normalize_tolerates_garbage(garbage) -> None:
    plan = normalize_plan(garbage, "G")

    assert plan["months"] == []
    assert plan["goal"] == "G"


def test_shape_and_task_iteration() -> None:
    plan = normalize_plan(
        {"months": [{"weeks": [{"days": [{"tasks": [{}, {}]}, {"tasks": [{}]}]}]}]}, "G"
    )

    assert plan_shape(plan) == {"months": 1, "weeks": 1, "days": 2, "tasks": 3}
    assert len(list(iter_tasks(plan))) == 3


def test_copy_json_empties_containers_below_depth_limit() -> None:
    deep = {"keep": 1, "junk": json.loads("[" * 600 + "]" * 600)}

    copied = copy_json(deep)

    assert copied["keep"] == 1
    depth = 0
    node = copied["junk"]
    while node:
        node = node[0]
        depth += 1
    assert depth < MAX_COPY_DEPTH


def test_normalize_survives_deep_extra_keys() -> None:
    raw = {"months": [{"title": "M", "notes": {"x": json.loads("[" * 600 + "]" * 600)}}]}

    plan = normalize_plan(raw, "G")

    assert plan["months"][0]["title"] == "M"
    assert normalize_plan(plan) == plan
