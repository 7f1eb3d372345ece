"""Task completion toggling and progress summaries for plan trees."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from milestone_ai.services.errors import PlanCoordinateError
from milestone_ai.services.plan_normalizer import coerce_completed, iter_tasks

Coordinate = Union[int, str]


@dataclass
class MonthProgress:
    index: int
    title: str
    total: int
    completed: int
    percent: int


@dataclass
class PlanProgress:
    total: int
    completed: int
    percent: int
    months: List[MonthProgress] = field(default_factory=list)


def percent_complete(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round(completed * 100 / total))


def _select(nodes: Any, coordinate: Coordinate, level: str) -> Dict[str, Any]:
    if not isinstance(nodes, list):
        raise PlanCoordinateError(f"{level} {coordinate!r} not found")
    if isinstance(coordinate, bool):
        raise PlanCoordinateError(f"{level} coordinate must be an index or an id")
    if isinstance(coordinate, int):
        if 0 <= coordinate < len(nodes) and isinstance(nodes[coordinate], dict):
            return nodes[coordinate]
        raise PlanCoordinateError(f"{level} index {coordinate} out of range")
    for node in nodes:
        if isinstance(node, dict) and node.get("id") == coordinate:
            return node
    raise PlanCoordinateError(f"{level} {coordinate!r} not found")


def _locate_task(
    plan: Dict[str, Any],
    month: Coordinate,
    week: Coordinate,
    day: Coordinate,
    task: Coordinate,
) -> Dict[str, Any]:
    month_node = _select(plan.get("months"), month, "month")
    week_node = _select(month_node.get("weeks"), week, "week")
    day_node = _select(week_node.get("days"), day, "day")
    return _select(day_node.get("tasks"), task, "task")


def set_task_completed(
    plan: Dict[str, Any],
    month: Coordinate,
    week: Coordinate,
    day: Coordinate,
    task: Coordinate,
    completed: bool,
) -> Dict[str, Any]:
    """Return a copy of ``plan`` with one task's completion set.

    Coordinates are positional indexes or node ids.

    Raises:
        PlanCoordinateError: when any coordinate does not resolve.
    """
    updated = copy.deepcopy(plan)
    target = _locate_task(updated, month, week, day, task)
    target["completed"] = bool(completed)
    return updated


def toggle_task(
    plan: Dict[str, Any],
    month: Coordinate,
    week: Coordinate,
    day: Coordinate,
    task: Coordinate,
) -> Dict[str, Any]:
    """Return a copy of ``plan`` with one task's completion flipped."""
    current = _locate_task(plan, month, week, day, task)
    return set_task_completed(plan, month, week, day, task, not coerce_completed(current.get("completed")))


def summarize_progress(plan: Dict[str, Any]) -> PlanProgress:
    months: List[MonthProgress] = []
    for index, month in enumerate(plan.get("months", [])):
        tasks = list(iter_tasks({"months": [month]}))
        done = sum(1 for task in tasks if coerce_completed(task.get("completed")))
        months.append(
            MonthProgress(
                index=index,
                title=month.get("title", ""),
                total=len(tasks),
                completed=done,
                percent=percent_complete(done, len(tasks)),
            )
        )

    total = sum(month.total for month in months)
    completed = sum(month.completed for month in months)
    return PlanProgress(
        total=total,
        completed=completed,
        percent=percent_complete(completed, total),
        months=months,
    )
