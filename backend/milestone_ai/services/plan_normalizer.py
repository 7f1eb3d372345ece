"""Shared normalization helpers for plan trees.

A plan tree is plain JSON data::

    {"goal": str, "months": [{"id", "title", "weeks": [{"id", "title",
        "days": [{"id", "title", "tasks": [{"id", "title", "completed"}]}]}]}]}

Everything here returns new objects; callers' trees are never mutated.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

# Child collection and positional title for each tree level.
LEVELS = (
    ("month", "weeks", "Month"),
    ("week", "days", "Week"),
    ("day", "tasks", "Day"),
    ("task", None, "Task"),
)

TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on", "done", "completed"})

# Plan nodes sit at most 8 containers deep; anything below this is AI junk.
MAX_COPY_DEPTH = 32


def new_node_id(prefix: str) -> str:
    """Return a fresh node id such as ``week-3f2c...``."""
    return f"{prefix}-{uuid4().hex}"


def default_title(label: str, position: int) -> str:
    return f"{label} {position}"


def coerce_completed(value: Any) -> bool:
    """Collapse whatever storage or the AI produced into a strict boolean.

    Strings are read for their meaning, so ``"false"`` stays False.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def as_node_list(value: Any) -> List[Dict[str, Any]]:
    """Return the dict entries of ``value`` or [] when it is not a list."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


def has_text(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    return bool(str(value).strip())


def copy_json(value: Any, depth: int = 0) -> Any:
    """Copy JSON data, emptying containers nested deeper than MAX_COPY_DEPTH."""
    if isinstance(value, dict):
        if depth >= MAX_COPY_DEPTH:
            return {}
        return {key: copy_json(item, depth + 1) for key, item in value.items()}
    if isinstance(value, list):
        if depth >= MAX_COPY_DEPTH:
            return []
        return [copy_json(item, depth + 1) for item in value]
    return value


def _normalize_node(node: Dict[str, Any], level: int, position: int) -> Dict[str, Any]:
    prefix, children_key, label = LEVELS[level]
    node["id"] = str(node["id"]) if has_text(node.get("id")) else new_node_id(prefix)
    title = node.get("title")
    node["title"] = str(title) if has_text(title) else default_title(label, position)

    if children_key is None:
        node["completed"] = coerce_completed(node.get("completed"))
        return node

    children = as_node_list(node.get(children_key))
    node[children_key] = [
        _normalize_node(child, level + 1, index) for index, child in enumerate(children, start=1)
    ]
    return node


def normalize_plan(plan: Any, goal: Optional[str] = None) -> Dict[str, Any]:
    """Return a copy of ``plan`` satisfying every tree invariant.

    Safe on partial or garbage input and idempotent: running it on its own
    output changes nothing.
    """
    normalized: Dict[str, Any] = copy_json(plan) if isinstance(plan, dict) else {}
    if goal is not None:
        normalized["goal"] = goal
    elif not isinstance(normalized.get("goal"), str):
        normalized["goal"] = ""

    months = as_node_list(normalized.get("months"))
    normalized["months"] = [
        _normalize_node(month, 0, index) for index, month in enumerate(months, start=1)
    ]
    return normalized


def iter_tasks(plan: Dict[str, Any]):
    """Yield every task dict of a normalized plan in display order."""
    for month in plan.get("months", []):
        for week in month.get("weeks", []):
            for day in week.get("days", []):
                yield from day.get("tasks", [])


def plan_shape(plan: Dict[str, Any]) -> Dict[str, int]:
    """Count nodes per level, used for logging and trace metadata."""
    months = plan.get("months", [])
    weeks = [week for month in months for week in month.get("weeks", [])]
    days = [day for week in weeks for day in week.get("days", [])]
    return {
        "months": len(months),
        "weeks": len(weeks),
        "days": len(days),
        "tasks": sum(len(day.get("tasks", [])) for day in days),
    }
