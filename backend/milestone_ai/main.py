"""Main FastAPI application for the Milestone.AI backend."""
from fastapi import FastAPI, Request

from milestone_ai.api.routes.plans import router as plans_router
from milestone_ai.core.config import settings
from milestone_ai.core.logging import configure_logging
from milestone_ai.core.middleware import RequestIDMiddleware
from milestone_ai.db.session import init_db
from milestone_ai.observability.client import init_opik
from milestone_ai.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(plans_router)


@app.on_event("startup")
async def startup() -> None:
    """Initialize observability and, when asked to, the database schema."""
    init_opik()
    if settings.db_auto_create:
        init_db()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
