"""ORM models exposed for metadata discovery."""
from milestone_ai.db.models.saved_plan import SavedPlan
from milestone_ai.db.models.user import User

__all__ = [
    "SavedPlan",
    "User",
]
