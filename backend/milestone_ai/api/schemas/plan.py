"""Schemas for the plan API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

Coordinate = Union[int, str]


class PlanTask(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    completed: bool = False


class PlanDay(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    tasks: List[PlanTask] = Field(default_factory=list)


class PlanWeek(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    days: List[PlanDay] = Field(default_factory=list)


class PlanMonth(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    weeks: List[PlanWeek] = Field(default_factory=list)


class PlanTree(BaseModel):
    model_config = ConfigDict(extra="allow")

    goal: str
    months: List[PlanMonth] = Field(default_factory=list)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"] = "user"
    content: str


class PlanGenerateRequest(BaseModel):
    user_id: Optional[UUID] = None
    goal: str = Field(..., max_length=500)
    history: List[ChatMessage] = Field(default_factory=list)
    prior_plan: Optional[Dict[str, Any]] = None
    save: bool = True


class PlanParseRequest(BaseModel):
    user_id: Optional[UUID] = None
    goal: str = Field(..., max_length=500)
    raw_text: str
    save: bool = False


class PlanBuildResponse(BaseModel):
    plan: PlanTree
    source: Literal["json", "fragment", "markdown", "fallback"]
    degraded: bool
    message: str
    saved: bool = False
    plan_id: Optional[UUID] = None
    save_error: Optional[str] = None
    request_id: str


class PlanSummary(BaseModel):
    id: UUID
    goal: str
    interaction_mode: str
    total_tasks: int
    completed_tasks: int
    percent: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlanDetail(BaseModel):
    id: UUID
    user_id: UUID
    goal: str
    interaction_mode: str
    plan: PlanTree
    chat_history: Optional[List[Dict[str, Any]]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlanReplaceRequest(BaseModel):
    user_id: UUID
    plan: Dict[str, Any]
    chat_history: Optional[List[Dict[str, Any]]] = None


class TaskToggleRequest(BaseModel):
    user_id: UUID
    month: Coordinate
    week: Coordinate
    day: Coordinate
    task: Coordinate
    completed: Optional[bool] = None

    @field_validator("month", "week", "day", "task")
    @classmethod
    def reject_negative_index(cls, value: Coordinate) -> Coordinate:
        if isinstance(value, int) and value < 0:
            raise ValueError("indexes must be zero or positive")
        return value


class MonthProgressResponse(BaseModel):
    index: int
    title: str
    total: int
    completed: int
    percent: int


class PlanProgressResponse(BaseModel):
    plan_id: UUID
    total: int
    completed: int
    percent: int
    months: List[MonthProgressResponse]


class PlanDeleteResponse(BaseModel):
    deleted: int
