"""Persistence of plan trees keyed by owner and goal."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from milestone_ai.db.models.saved_plan import SavedPlan
from milestone_ai.services.errors import (
    PlanGoalError,
    PlanNotFoundError,
    PlanOwnershipError,
    PlanPersistenceError,
)
from milestone_ai.services.plan_normalizer import normalize_plan
from milestone_ai.services.user_service import ensure_plan_owner

logger = logging.getLogger(__name__)

INTERACTION_MODES = ("plan", "chat")


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", action, exc)
        raise PlanPersistenceError(f"Failed to {action}") from exc


def _check_mode(interaction_mode: str) -> str:
    if interaction_mode not in INTERACTION_MODES:
        raise ValueError(f"interaction_mode must be one of {INTERACTION_MODES}")
    return interaction_mode


def load_plan_tree(record: SavedPlan) -> Dict[str, Any]:
    """Return the stored tree normalized, whatever shape storage holds."""
    return normalize_plan(record.plan, record.goal)


def save_plan(
    db: Session,
    user_id: UUID,
    goal: str,
    plan: Dict[str, Any],
    *,
    interaction_mode: str = "plan",
    chat_history: Optional[Sequence[Dict[str, Any]]] = None,
) -> SavedPlan:
    """Store a new plan for ``user_id``.

    Raises:
        PlanGoalError: when ``goal`` is blank.
        PlanPersistenceError: when the write fails.
    """
    cleaned_goal = (goal or "").strip()
    if not cleaned_goal:
        raise PlanGoalError("A plan cannot be saved without a goal.")

    record = SavedPlan(
        user_id=user_id,
        goal=cleaned_goal,
        plan=normalize_plan(plan, cleaned_goal),
        interaction_mode=_check_mode(interaction_mode),
        chat_history=list(chat_history) if chat_history else None,
    )
    try:
        ensure_plan_owner(db, user_id)
        db.add(record)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PlanPersistenceError("Failed to save plan") from exc
    _commit(db, "save plan")
    db.refresh(record)
    logger.info("Saved plan %s for goal %r.", record.id, cleaned_goal[:80])
    return record


def get_plan(db: Session, plan_id: UUID, user_id: Optional[UUID] = None) -> SavedPlan:
    """Fetch one plan, checking ownership when ``user_id`` is given."""
    try:
        record = db.get(SavedPlan, plan_id)
    except SQLAlchemyError as exc:
        raise PlanPersistenceError("Failed to load plan") from exc
    if record is None:
        raise PlanNotFoundError(f"Plan {plan_id} not found")
    if user_id is not None and record.user_id != user_id:
        raise PlanOwnershipError(f"Plan {plan_id} belongs to another user")
    return record


def replace_plan(
    db: Session,
    plan_id: UUID,
    user_id: UUID,
    plan: Dict[str, Any],
    *,
    chat_history: Optional[Sequence[Dict[str, Any]]] = None,
) -> SavedPlan:
    """Overwrite the stored tree; the last write wins."""
    record = get_plan(db, plan_id, user_id)
    record.plan = normalize_plan(plan, record.goal)
    if chat_history is not None:
        record.chat_history = list(chat_history)
    _commit(db, "update plan")
    db.refresh(record)
    return record


def list_user_plans(db: Session, user_id: UUID) -> List[SavedPlan]:
    """All plans of a user, grouped by goal and newest first within a goal."""
    try:
        return (
            db.query(SavedPlan)
            .filter(SavedPlan.user_id == user_id)
            .order_by(asc(SavedPlan.goal), desc(SavedPlan.created_at))
            .all()
        )
    except SQLAlchemyError as exc:
        raise PlanPersistenceError("Failed to list plans") from exc


def delete_plan(db: Session, plan_id: UUID, user_id: UUID) -> None:
    record = get_plan(db, plan_id, user_id)
    db.delete(record)
    _commit(db, "delete plan")
    logger.info("Deleted plan %s.", plan_id)


def delete_plans_by_goal(db: Session, user_id: UUID, goal: str) -> int:
    """Delete every plan of ``user_id`` for ``goal``; returns how many went."""
    records = (
        db.query(SavedPlan)
        .filter(SavedPlan.user_id == user_id, SavedPlan.goal == goal.strip())
        .all()
    )
    for record in records:
        db.delete(record)
    _commit(db, "delete plans")
    logger.info("Deleted %d plan(s) for goal %r.", len(records), goal[:80])
    return len(records)
