"""Plan generation, storage and progress API routes."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from milestone_ai.api.schemas.plan import (
    MonthProgressResponse,
    PlanBuildResponse,
    PlanDeleteResponse,
    PlanDetail,
    PlanGenerateRequest,
    PlanParseRequest,
    PlanProgressResponse,
    PlanReplaceRequest,
    PlanSummary,
    TaskToggleRequest,
)
from milestone_ai.core.context import bind_user_id
from milestone_ai.db.deps import get_db
from milestone_ai.db.models.saved_plan import SavedPlan
from milestone_ai.observability.metrics import log_metric
from milestone_ai.observability.tracing import trace
from milestone_ai.services.errors import (
    PlanCoordinateError,
    PlanError,
    PlanGoalError,
    PlanNotFoundError,
    PlanOwnershipError,
    PlanPersistenceError,
)
from milestone_ai.services.llm_client import LLMSession, PlanLLMClient, get_plan_llm_client
from milestone_ai.services.plan_generator import (
    PlanBuildResult,
    build_plan_from_response,
    generate_plan,
    require_goal,
)
from milestone_ai.services.plan_progress import set_task_completed, summarize_progress, toggle_task
from milestone_ai.services import plan_store

router = APIRouter()


def get_llm_client() -> Optional[PlanLLMClient]:
    """One client and key-check session per request."""
    return get_plan_llm_client(session=LLMSession())


def _http_error(exc: PlanError) -> HTTPException:
    if isinstance(exc, PlanGoalError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, (PlanNotFoundError, PlanCoordinateError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PlanOwnershipError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Plan belongs to another user")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _build_response(
    db: Session,
    result: PlanBuildResult,
    goal: str,
    *,
    user_id: Optional[UUID],
    save: bool,
    chat_history: Optional[List[Dict[str, Any]]],
    request_id: Optional[str],
) -> PlanBuildResponse:
    saved = False
    plan_id: Optional[UUID] = None
    save_error: Optional[str] = None

    if save and user_id is not None:
        try:
            record = plan_store.save_plan(db, user_id, goal, result.plan, chat_history=chat_history)
        except PlanPersistenceError as exc:
            save_error = str(exc)
        else:
            saved = True
            plan_id = record.id

    return PlanBuildResponse(
        plan=result.plan,
        source=result.source,
        degraded=result.degraded,
        message=result.message,
        saved=saved,
        plan_id=plan_id,
        save_error=save_error,
        request_id=request_id or "",
    )


def _summary(record: SavedPlan) -> PlanSummary:
    progress = summarize_progress(plan_store.load_plan_tree(record))
    return PlanSummary(
        id=record.id,
        goal=record.goal,
        interaction_mode=record.interaction_mode,
        total_tasks=progress.total,
        completed_tasks=progress.completed,
        percent=progress.percent,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _detail(record: SavedPlan) -> PlanDetail:
    return PlanDetail(
        id=record.id,
        user_id=record.user_id,
        goal=record.goal,
        interaction_mode=record.interaction_mode,
        plan=plan_store.load_plan_tree(record),
        chat_history=record.chat_history,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.post("/plans/generate", response_model=PlanBuildResponse, tags=["plans"])
def generate_plan_endpoint(
    payload: PlanGenerateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    llm_client: Optional[PlanLLMClient] = Depends(get_llm_client),
) -> PlanBuildResponse:
    """Generate a 90-day plan for a goal and store it for the user."""
    request_id = getattr(http_request.state, "request_id", None)
    if payload.user_id is not None:
        bind_user_id(payload.user_id)
    history = [message.model_dump() for message in payload.history]

    with trace(
        "plan.generate.request",
        metadata={"route": "/plans/generate", "save": payload.save, "history_length": len(history)},
        user_id=str(payload.user_id) if payload.user_id else None,
        request_id=request_id,
    ):
        try:
            result = generate_plan(payload.goal, llm_client, history=history, prior_plan=payload.prior_plan)
        except PlanGoalError as exc:
            raise _http_error(exc) from exc

        goal = payload.goal.strip()
        chat_history = history + [{"role": "assistant", "content": result.message}]
        response = _build_response(
            db,
            result,
            goal,
            user_id=payload.user_id,
            save=payload.save,
            chat_history=chat_history,
            request_id=request_id,
        )

    log_metric("plan.save.success", 1 if response.saved else 0, metadata={"source": result.source})
    return response


@router.post("/plans/parse", response_model=PlanBuildResponse, tags=["plans"])
def parse_plan_endpoint(
    payload: PlanParseRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> PlanBuildResponse:
    """Structure already-generated AI text without calling the AI."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        goal = require_goal(payload.goal)
    except PlanGoalError as exc:
        raise _http_error(exc) from exc

    result = build_plan_from_response(payload.raw_text, goal)
    return _build_response(
        db,
        result,
        goal,
        user_id=payload.user_id,
        save=payload.save,
        chat_history=None,
        request_id=request_id,
    )


@router.get("/plans", response_model=List[PlanSummary], tags=["plans"])
def list_plans_endpoint(
    user_id: UUID = Query(..., description="User ID owning the plans"),
    db: Session = Depends(get_db),
) -> List[PlanSummary]:
    try:
        records = plan_store.list_user_plans(db, user_id)
    except PlanError as exc:
        raise _http_error(exc) from exc
    return [_summary(record) for record in records]


@router.get("/plans/{plan_id}", response_model=PlanDetail, tags=["plans"])
def get_plan_endpoint(
    plan_id: UUID,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> PlanDetail:
    try:
        record = plan_store.get_plan(db, plan_id, user_id)
    except PlanError as exc:
        raise _http_error(exc) from exc
    return _detail(record)


@router.put("/plans/{plan_id}", response_model=PlanDetail, tags=["plans"])
def replace_plan_endpoint(
    plan_id: UUID,
    payload: PlanReplaceRequest,
    db: Session = Depends(get_db),
) -> PlanDetail:
    """Replace the whole stored tree with the client's copy."""
    bind_user_id(payload.user_id)
    try:
        record = plan_store.replace_plan(
            db,
            plan_id,
            payload.user_id,
            payload.plan,
            chat_history=payload.chat_history,
        )
    except PlanError as exc:
        raise _http_error(exc) from exc
    return _detail(record)


@router.patch("/plans/{plan_id}/tasks/toggle", response_model=PlanDetail, tags=["plans"])
def toggle_task_endpoint(
    plan_id: UUID,
    payload: TaskToggleRequest,
    db: Session = Depends(get_db),
) -> PlanDetail:
    """Flip (or set, when ``completed`` is given) one task's completion."""
    bind_user_id(payload.user_id)
    coordinates = (payload.month, payload.week, payload.day, payload.task)
    try:
        record = plan_store.get_plan(db, plan_id, payload.user_id)
        tree = plan_store.load_plan_tree(record)
        if payload.completed is None:
            updated = toggle_task(tree, *coordinates)
        else:
            updated = set_task_completed(tree, *coordinates, payload.completed)
        record = plan_store.replace_plan(db, plan_id, payload.user_id, updated)
    except PlanError as exc:
        raise _http_error(exc) from exc

    log_metric("plan.task.toggle", 1, metadata={"plan_id": str(plan_id)})
    return _detail(record)


@router.get("/plans/{plan_id}/progress", response_model=PlanProgressResponse, tags=["plans"])
def plan_progress_endpoint(
    plan_id: UUID,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> PlanProgressResponse:
    try:
        record = plan_store.get_plan(db, plan_id, user_id)
    except PlanError as exc:
        raise _http_error(exc) from exc

    progress = summarize_progress(plan_store.load_plan_tree(record))
    return PlanProgressResponse(
        plan_id=record.id,
        total=progress.total,
        completed=progress.completed,
        percent=progress.percent,
        months=[
            MonthProgressResponse(
                index=month.index,
                title=month.title,
                total=month.total,
                completed=month.completed,
                percent=month.percent,
            )
            for month in progress.months
        ],
    )


@router.delete("/plans/{plan_id}", response_model=PlanDeleteResponse, tags=["plans"])
def delete_plan_endpoint(
    plan_id: UUID,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> PlanDeleteResponse:
    try:
        plan_store.delete_plan(db, plan_id, user_id)
    except PlanError as exc:
        raise _http_error(exc) from exc
    return PlanDeleteResponse(deleted=1)


@router.delete("/plans", response_model=PlanDeleteResponse, tags=["plans"])
def delete_goal_plans_endpoint(
    user_id: UUID = Query(..., description="User ID owning the plans"),
    goal: str = Query(..., min_length=1, description="Goal whose plans are removed"),
    db: Session = Depends(get_db),
) -> PlanDeleteResponse:
    """Remove every plan the user saved for one goal."""
    try:
        deleted = plan_store.delete_plans_by_goal(db, user_id, goal)
    except PlanError as exc:
        raise _http_error(exc) from exc
    return PlanDeleteResponse(deleted=deleted)
