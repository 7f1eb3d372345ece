"""Engine and session factory bound to the configured database."""
from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from milestone_ai.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(settings.database_url, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db() -> None:
    """Create any missing tables (used when DB_AUTO_CREATE is enabled)."""
    from milestone_ai.db.base import Base
    from milestone_ai.db import models  # noqa: F401  (registers tables)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured.")
