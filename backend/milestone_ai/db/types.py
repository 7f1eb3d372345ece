"""Database column type helpers."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, TypeDecorator


def to_json_document(value: Any) -> Any:
    """Reduce pydantic models and tuples to the plain dict/list form JSON columns store."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {str(key): to_json_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_document(item) for item in value]
    return value


class JSONDocument(TypeDecorator):
    """Plan trees and chat transcripts: JSONB on PostgreSQL, JSON on SQLite.

    Values bound to the column may be pydantic models (``PlanTree``,
    ``ChatMessage``); they are stored as their JSON dump.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_json_document(value)
