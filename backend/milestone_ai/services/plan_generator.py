"""Plan generation pipeline: AI text -> JSON or Markdown -> repaired, normalized plan."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from milestone_ai.observability.metrics import log_metric, timed
from milestone_ai.observability.tracing import annotate, trace
from milestone_ai.services.errors import PlanExtractionError, PlanGoalError, PlanLLMError
from milestone_ai.services.llm_client import PlanLLMClient
from milestone_ai.services.plan_extraction import load_plan_json
from milestone_ai.services.plan_normalizer import normalize_plan, plan_shape
from milestone_ai.services.plan_parser import parse_markdown_plan
from milestone_ai.services.plan_repair import build_fallback_plan, repair_plan_structure

logger = logging.getLogger(__name__)

SOURCE_JSON = "json"
SOURCE_FRAGMENT = "fragment"
SOURCE_MARKDOWN = "markdown"
SOURCE_FALLBACK = "fallback"

PLAN_READY_MESSAGE = (
    "I've created a 90-day plan to help you achieve your goal. "
    "You can view the plan and track your progress over time."
)
UNSTRUCTURED_MESSAGE = (
    "I couldn't turn the AI response into a structured plan, so I've created a basic "
    "plan template for you to get started."
)
AI_UNAVAILABLE_MESSAGE = (
    "Sorry, I couldn't reach the AI planner. I've created a basic plan template for you to get started."
)


@dataclass
class PlanBuildResult:
    plan: Dict[str, Any]
    source: str
    degraded: bool = False
    message: str = PLAN_READY_MESSAGE


def require_goal(goal: Optional[str]) -> str:
    cleaned = (goal or "").strip()
    if not cleaned:
        raise PlanGoalError("Please describe the goal you want to plan for.")
    return cleaned


def _fallback_result(goal: str, message: str) -> PlanBuildResult:
    return PlanBuildResult(
        plan=normalize_plan(build_fallback_plan(goal), goal),
        source=SOURCE_FALLBACK,
        degraded=True,
        message=message,
    )


def _plan_from_json(raw_text: str, goal: str) -> Optional[PlanBuildResult]:
    try:
        candidate = load_plan_json(raw_text)
    except PlanExtractionError as exc:
        logger.info("No JSON plan in AI response (%s); trying Markdown.", exc)
        return None

    repaired = repair_plan_structure(candidate, goal)
    if not isinstance(repaired.get("months"), list) or not repaired["months"]:
        logger.info("JSON plan had no usable months; trying Markdown.")
        return None

    plan = normalize_plan(repaired, goal)
    if not plan["months"]:
        return None
    source = SOURCE_JSON if repaired is candidate else SOURCE_FRAGMENT
    return PlanBuildResult(plan=plan, source=source)


def build_plan_from_response(raw_text: Optional[str], goal: str) -> PlanBuildResult:
    """Recover a plan from raw AI text; falls back to the template, never raises."""
    with trace("plan.build", metadata={"goal": goal[:200], "response_length": len(raw_text or "")}) as span:
        result = _plan_from_json(raw_text or "", goal)
        if result is None:
            parsed = parse_markdown_plan(raw_text, goal)
            if parsed is not None:
                result = PlanBuildResult(plan=normalize_plan(parsed, goal), source=SOURCE_MARKDOWN)
        if result is None:
            logger.warning("AI response could not be structured; using fallback plan.")
            result = _fallback_result(goal, UNSTRUCTURED_MESSAGE)
        annotate(span, source=result.source, degraded=result.degraded, shape=plan_shape(result.plan))
    return result


def generate_plan(
    goal: Optional[str],
    client: Optional[PlanLLMClient],
    *,
    history: Optional[Sequence[Dict[str, Any]]] = None,
    prior_plan: Optional[Dict[str, Any]] = None,
) -> PlanBuildResult:
    """Ask the AI for a plan and recover a usable tree from whatever comes back.

    Only a blank goal is an error; AI failures degrade to the fallback plan.
    """
    cleaned_goal = require_goal(goal)
    metric_metadata: Dict[str, Any] = {"has_history": bool(history), "has_prior_plan": bool(prior_plan)}

    with timed("plan.generate", metric_metadata) as outcome:
        with trace("plan.generate", metadata={"goal": cleaned_goal[:200], **metric_metadata}) as span:
            if client is None:
                result = _fallback_result(cleaned_goal, AI_UNAVAILABLE_MESSAGE)
            else:
                try:
                    raw_text = client.generate_plan_text(cleaned_goal, history=history, prior_plan=prior_plan)
                except PlanLLMError as exc:
                    logger.error("AI plan generation failed: %s", exc)
                    result = _fallback_result(cleaned_goal, AI_UNAVAILABLE_MESSAGE)
                else:
                    result = build_plan_from_response(raw_text, cleaned_goal)
            annotate(span, source=result.source, degraded=result.degraded)
        outcome["source"] = result.source

    log_metric("plan.generate.source", 1, {"source": result.source})
    log_metric("plan.generate.fallback_used", 1 if result.source == SOURCE_FALLBACK else 0)
    logger.info("Generated plan for goal %r from %s (%s).", cleaned_goal[:80], result.source, plan_shape(result.plan))
    return result
