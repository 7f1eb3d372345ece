"""Database utilities and models."""

from milestone_ai.db.base import Base
from milestone_ai.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
