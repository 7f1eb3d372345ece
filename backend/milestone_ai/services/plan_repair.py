"""Structural repair of malformed AI plans and the no-AI fallback plan.

Both entry points are total: they accept anything JSON can express and always
return a plan dict.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from milestone_ai.core.config import settings
from milestone_ai.services.plan_normalizer import as_node_list, copy_json, has_text, new_node_id

logger = logging.getLogger(__name__)

MONTHS_PER_PLAN = 3
WEEKS_PER_MONTH = 4
DAYS_PER_WEEK = 7
WEEKS_PER_PLAN = MONTHS_PER_PLAN * WEEKS_PER_MONTH

WEEKEND_REVIEW_DAY = 5
NEXT_WEEK_PREP_DAY = 6

PHASE_NAMES = {1: "Foundation", 2: "Implementation", 3: "Completion"}

# (phase, slot) -> (first task, second task); "{goal}" is filled with the goal text.
SYNTHETIC_TASK_TITLES: Dict[tuple[int, str], tuple[str, str]] = {
    (1, "weekday"): (
        "Academic foundation building for {goal}",
        "Review new concepts and strengthen understanding",
    ),
    (1, "weekend_review"): (
        "Weekend review: Reflect on initial progress",
        "Take time for self-care and balance",
    ),
    (1, "next_week"): (
        "Plan for the upcoming week's learning objectives",
        "Prepare materials for next week",
    ),
    (2, "weekday"): (
        "Continue implementation of goal for {goal}",
        "Review progress and adjust approach if needed",
    ),
    (2, "weekend_review"): (
        "Weekend review: Reflect on progress made during the week",
        "Take time for self-care and maintain work-life balance",
    ),
    (2, "next_week"): (
        "Plan for the upcoming week and organize resources",
        "Prepare mentally for the next week's challenges",
    ),
    (3, "weekday"): (
        "Finalize remaining steps for goal completion",
        "Document progress and achievements",
    ),
    (3, "weekend_review"): (
        "Final weekend review: Assess overall progress toward goal",
        "Reflect on lessons learned throughout the 90-day journey",
    ),
    (3, "next_week"): (
        "Prepare presentation or documentation of achievements",
        "Set future goals based on this 90-day experience",
    ),
}

# Month index -> two generic tasks used for every day of the fallback plan.
FALLBACK_TASK_TITLES: Sequence[tuple[str, str]] = (
    ("Planning task for {goal}", "Research resources and tools needed"),
    ("Continue working toward goal", "Review progress and adjust approach if needed"),
    ("Final steps toward completing goal", "Document lessons learned and achievements"),
)


def _empty_plan(goal: str) -> Dict[str, Any]:
    return {"months": [], "goal": goal}


def _task(title: str) -> Dict[str, Any]:
    return {"id": new_node_id("task"), "title": title, "completed": False}


def _phase_for_week(week_number: int) -> int:
    if week_number > 2 * WEEKS_PER_MONTH:
        return 3
    if week_number > WEEKS_PER_MONTH:
        return 2
    return 1


def _day_slot(day_index: int) -> str:
    if day_index == WEEKEND_REVIEW_DAY:
        return "weekend_review"
    if day_index == NEXT_WEEK_PREP_DAY:
        return "next_week"
    return "weekday"


def _scaffold_day(position: int, goal: str) -> Dict[str, Any]:
    return {
        "id": new_node_id("day"),
        "title": f"Day {position}",
        "tasks": [_task(f"Task for {goal}")],
    }


def synthesize_week(week_number: int, goal: str) -> Dict[str, Any]:
    """Build a generic week whose wording follows the plan phase it falls in."""
    phase = _phase_for_week(week_number)
    week: Dict[str, Any] = {
        "id": new_node_id("week"),
        "title": f"Week {week_number}: {PHASE_NAMES[phase]} Phase {week_number % WEEKS_PER_MONTH or WEEKS_PER_MONTH}",
        "days": [],
    }
    for day_index in range(DAYS_PER_WEEK):
        first, second = SYNTHETIC_TASK_TITLES[(phase, _day_slot(day_index))]
        week["days"].append(
            {
                "id": new_node_id("day"),
                "title": f"Day {day_index + 1}",
                "tasks": [_task(first.format(goal=goal)), _task(second.format(goal=goal))],
            }
        )
    return week


def _repair_fragment_week(raw_week: Any, position: int, goal: str) -> Dict[str, Any]:
    week = copy_json(raw_week) if isinstance(raw_week, dict) else {}
    if not has_text(week.get("id")):
        week["id"] = new_node_id("week")
    if not has_text(week.get("title")):
        week["title"] = f"Week {position}"

    days = as_node_list(week.get("days"))[:DAYS_PER_WEEK]
    for day_position, day in enumerate(days, start=1):
        if not has_text(day.get("id")):
            day["id"] = new_node_id("day")
        if not has_text(day.get("title")):
            day["title"] = f"Day {day_position}"
        day["tasks"] = as_node_list(day.get("tasks")) or [_task(f"Task for {goal}")]
    while len(days) < DAYS_PER_WEEK:
        days.append(_scaffold_day(len(days) + 1, goal))
    week["days"] = days
    return week


def repair_plan_structure(
    candidate: Any,
    fallback_goal: str,
    month_titles: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Return a plan for any JSON-like ``candidate``.

    * ``{"months": [...]}`` is passed through unchanged.
    * ``{"weeks": [...]}`` (a single month) is expanded to 3 months x 4 weeks
      x 7 days, synthesizing whatever is missing.
    * Anything else yields an empty plan.
    """
    if not isinstance(candidate, dict):
        logger.info("Plan candidate is %s, not an object; returning empty plan.", type(candidate).__name__)
        return _empty_plan(fallback_goal)

    if isinstance(candidate.get("months"), list):
        return candidate

    if not isinstance(candidate.get("weeks"), list):
        logger.info("Could not determine plan structure (keys=%s); returning empty plan.", list(candidate)[:10])
        return _empty_plan(fallback_goal)

    titles = list(month_titles or settings.fragment_month_titles)
    fragment_weeks = candidate["weeks"]
    weeks: List[Dict[str, Any]] = [
        _repair_fragment_week(raw_week, position, fallback_goal)
        for position, raw_week in enumerate(fragment_weeks[:WEEKS_PER_PLAN], start=1)
    ]
    kept = len(weeks)
    while len(weeks) < WEEKS_PER_PLAN:
        weeks.append(synthesize_week(len(weeks) + 1, fallback_goal))

    months = []
    for index in range(MONTHS_PER_PLAN):
        start = index * WEEKS_PER_MONTH
        months.append(
            {
                "id": new_node_id("month"),
                "title": titles[index] if index < len(titles) else f"Month {index + 1}",
                "weeks": weeks[start : start + WEEKS_PER_MONTH],
            }
        )

    logger.info(
        "Expanded single-month fragment: kept %d week(s), synthesized %d.",
        kept,
        WEEKS_PER_PLAN - kept,
    )
    return {"months": months, "goal": fallback_goal}


def build_fallback_plan(goal: str) -> Dict[str, Any]:
    """Build the deterministic 3x4x7 plan used when no AI output is usable."""
    months = []
    for m in range(MONTHS_PER_PLAN):
        first, second = FALLBACK_TASK_TITLES[m]
        month: Dict[str, Any] = {"id": f"month-{m}", "title": f"Month {m + 1}", "weeks": []}
        for w in range(WEEKS_PER_MONTH):
            week: Dict[str, Any] = {"id": f"week-{m}-{w}", "title": f"Week {w + 1}", "days": []}
            for d in range(DAYS_PER_WEEK):
                week["days"].append(
                    {
                        "id": f"day-{m}-{w}-{d}",
                        "title": f"Day {d + 1}",
                        "tasks": [
                            {"id": f"task-{m}-{w}-{d}-0", "title": first.format(goal=goal), "completed": False},
                            {"id": f"task-{m}-{w}-{d}-1", "title": second.format(goal=goal), "completed": False},
                        ],
                    }
                )
            month["weeks"].append(week)
        months.append(month)

    logger.info("Built fallback plan for goal %r.", goal[:80])
    return {"months": months, "goal": goal}
