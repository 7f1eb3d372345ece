"""Tests for the Markdown plan parser."""
from __future__ import annotations

from milestone_ai.services.plan_parser import MarkdownPlanParser, ParserState, parse_markdown_plan


def test_single_month_week_and_two_tasks() -> None:
    plan = parse_markdown_plan("## Month 1: A\n### Week 1: B\n- Day 1: x\n- Day 2: y", "G")

    assert plan is not None
    assert plan["goal"] == "G"
    assert len(plan["months"]) == 1
    month = plan["months"][0]
    assert "A" in month["title"]
    assert len(month["weeks"]) == 1
    week = month["weeks"][0]
    assert "B" in week["title"]
    tasks = [task["title"] for day in week["days"] for task in day["tasks"]]
    assert tasks == ["x", "y"]


def test_no_month_heading_returns_none() -> None:
    assert parse_markdown_plan("Hello, I can help with that.", "G") is None
    assert parse_markdown_plan("", "G") is None
    assert parse_markdown_plan(None, "G") is None


def test_goal_line_is_ignored_in_favour_of_fallback_goal() -> None:
    plan = parse_markdown_plan("# Goal: Something else\n## Month 1: A", "Learn guitar")

    assert plan["goal"] == "Learn guitar"


def test_default_titles_when_heading_text_missing() -> None:
    plan = parse_markdown_plan("## Month 2\n### Week 3\n- Day 1: stretch", "G")

    month = plan["months"][0]
    assert month["title"] == "Month 2 Milestone"
    assert month["weeks"][0]["title"] == "Week 3 Objective"


def test_untagged_tasks_use_running_day_counter() -> None:
    text = "## Month 1: A\n### Week 1: B\n- read\n* write\n- Day 2: review"
    plan = parse_markdown_plan(text, "G")

    days = plan["months"][0]["weeks"][0]["days"]
    assert [day["title"] for day in days] == ["Day 1", "Day 2"]
    assert [task["title"] for task in days[0]["tasks"]] == ["read"]
    assert [task["title"] for task in days[1]["tasks"]] == ["write", "review"]


def test_day_counter_resets_per_week() -> None:
    text = "## Month 1: A\n### Week 1: B\n- a\n- b\n### Week 2: C\n- c"
    plan = parse_markdown_plan(text, "G")

    second_week = plan["months"][0]["weeks"][1]
    assert second_week["days"][0]["title"] == "Day 1"


def test_tasks_outside_a_week_are_ignored() -> None:
    parser = MarkdownPlanParser("G")
    plan = parser.parse("Intro line\n## Month 1: A\n- stray task\n### Week 1: B\n- kept")

    week = plan["months"][0]["weeks"][0]
    assert [task["title"] for day in week["days"] for task in day["tasks"]] == ["kept"]
    assert parser.ignored_lines == 2
    assert parser.state is ParserState.IN_WEEK


def test_headings_are_case_insensitive_and_tasks_start_incomplete() -> None:
    plan = parse_markdown_plan("# MONTH 1: Base\n#### week 1: Start\n- day 1: run", "G")

    task = plan["months"][0]["weeks"][0]["days"][0]["tasks"][0]
    assert task["title"] == "run"
    assert task["completed"] is False
    assert task["id"].startswith("task-")


def test_new_month_closes_previous_week() -> None:
    text = "## Month 1: A\n### Week 1: B\n- a\n## Month 2: C\n- orphan\n### Week 1: D\n- d"
    plan = parse_markdown_plan(text, "G")

    assert len(plan["months"]) == 2
    assert len(plan["months"][0]["weeks"][0]["days"]) == 1
    assert plan["months"][1]["weeks"][0]["days"][0]["tasks"][0]["title"] == "d"
