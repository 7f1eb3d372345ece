"""Markdown plan parser.

Turns heading/list-structured AI output into a plan tree::

    # Goal: ...
    ## Month 1: Foundations
    ### Week 1: Getting started
    - Day 1: Set up a study corner
    - Read chapter one

The parser is a small state machine over non-blank lines. It never trusts the
``# Goal:`` line; the caller's goal is always used.
"""
from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from milestone_ai.services.plan_normalizer import new_node_id

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^#+\s*Month\s*(\d+):?\s*(.*)", re.IGNORECASE)
WEEK_PATTERN = re.compile(r"^#+\s*Week\s*(\d+):?\s*(.*)", re.IGNORECASE)
TASK_PATTERN = re.compile(r"^(-|\*)\s*(?:Day\s*(\d+):?)?\s*(.*)", re.IGNORECASE)


class ParserState(str, Enum):
    SEEK_MONTH = "seek_month"
    IN_MONTH = "in_month"
    IN_WEEK = "in_week"


class MarkdownPlanParser:
    """Single-use parser; call :meth:`parse` once per response."""

    def __init__(self, fallback_goal: str) -> None:
        self.fallback_goal = fallback_goal
        self.state = ParserState.SEEK_MONTH
        self.months: List[Dict[str, Any]] = []
        self.current_month: Optional[Dict[str, Any]] = None
        self.current_week: Optional[Dict[str, Any]] = None
        self.day_counter = 0
        self.ignored_lines = 0

    def parse(self, raw_text: str) -> Optional[Dict[str, Any]]:
        for line in raw_text.splitlines():
            stripped = line.strip()
            if stripped:
                self.feed(stripped)

        if not self.months:
            logger.warning("Markdown parser found no month headings; response is unstructured.")
            return None

        logger.debug(
            "Markdown parser built %d month(s), ignored %d line(s).",
            len(self.months),
            self.ignored_lines,
        )
        return {"goal": self.fallback_goal, "months": self.months}

    def feed(self, line: str) -> None:
        month_match = MONTH_PATTERN.match(line)
        if month_match:
            self._start_month(int(month_match.group(1)), month_match.group(2).strip())
            return

        if self.state is ParserState.SEEK_MONTH:
            self.ignored_lines += 1
            return

        week_match = WEEK_PATTERN.match(line)
        if week_match:
            self._start_week(int(week_match.group(1)), week_match.group(2).strip())
            return

        task_match = TASK_PATTERN.match(line)
        if task_match and self.state is ParserState.IN_WEEK:
            explicit_day = task_match.group(2)
            self._add_task(int(explicit_day) if explicit_day else None, task_match.group(3).strip())
            return

        self.ignored_lines += 1

    def _start_month(self, number: int, text: str) -> None:
        self.current_month = {
            "id": new_node_id("month"),
            "title": f"Month {number}: {text}" if text else f"Month {number} Milestone",
            "weeks": [],
        }
        self.months.append(self.current_month)
        self.current_week = None
        self.state = ParserState.IN_MONTH

    def _start_week(self, number: int, text: str) -> None:
        self.current_week = {
            "id": new_node_id("week"),
            "title": f"Week {number}: {text}" if text else f"Week {number} Objective",
            "days": [],
        }
        self.current_month["weeks"].append(self.current_week)
        self.day_counter = 0
        self.state = ParserState.IN_WEEK

    def _add_task(self, explicit_day: Optional[int], description: str) -> None:
        self.day_counter += 1
        day_number = explicit_day if explicit_day is not None else self.day_counter
        day = self._day_for(day_number)
        day["tasks"].append(
            {
                "id": new_node_id("task"),
                "title": description or f"Task {len(day['tasks']) + 1}",
                "completed": False,
            }
        )

    def _day_for(self, day_number: int) -> Dict[str, Any]:
        for day in self.current_week["days"]:
            if day["day"] == day_number:
                return day
        day = {
            "id": new_node_id("day"),
            "title": f"Day {day_number}",
            "day": day_number,
            "tasks": [],
        }
        self.current_week["days"].append(day)
        return day


def parse_markdown_plan(raw_text: Optional[str], fallback_goal: str) -> Optional[Dict[str, Any]]:
    """Parse Markdown AI output into a plan, or return None when no month heading exists."""
    if not raw_text or not raw_text.strip():
        return None
    return MarkdownPlanParser(fallback_goal).parse(raw_text)
