"""Plan owner registration."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from milestone_ai.db.models.user import User

logger = logging.getLogger(__name__)


def ensure_plan_owner(db: Session, user_id: UUID) -> User:
    """Return the ``users`` row a saved plan hangs off, registering it on first save.

    Users are not managed by this service beyond their id, so the first plan a
    user saves creates the row. A concurrent first save can win the insert; the
    loser reloads the winner's row.
    """
    owner = db.get(User, user_id)
    if owner is not None:
        return owner

    owner = User(id=user_id)
    db.add(owner)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        owner = db.get(User, user_id)
        if owner is None:
            raise
        logger.info("Plan owner %s registered concurrently; using existing row.", user_id)
        return owner

    logger.info("Registered plan owner %s.", user_id)
    return owner
