from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from milestone_ai.api.routes.plans import get_llm_client
from milestone_ai.db.deps import get_db
from milestone_ai.db.models.saved_plan import SavedPlan
from milestone_ai.db.models.user import User
from milestone_ai.main import app


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    User.__table__.create(bind=engine)
    SavedPlan.__table__.create(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture()
def llm_stub():
    """Mutable stand-in for the OpenAI-backed client; set ``response`` or ``error``."""

    class _StubLLM:
        response: str | None = None
        error: Exception | None = None

        def generate_plan_text(self, goal, *, history=None, prior_plan=None):
            if self.error:
                raise self.error
            return self.response

    return _StubLLM()


@pytest.fixture()
def client(session_factory, llm_stub):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: llm_stub
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
