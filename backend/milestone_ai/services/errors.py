"""Domain errors raised by plan services and translated at the API layer."""
from __future__ import annotations


class PlanError(Exception):
    """Base class for plan service failures."""


class PlanGoalError(PlanError, ValueError):
    """The user supplied no usable goal text."""


class PlanExtractionError(PlanError, ValueError):
    """No JSON value could be recovered from an AI response."""


class PlanLLMError(PlanError):
    """The generative-language backend failed to return plan text."""


class PlanCoordinateError(PlanError, LookupError):
    """A month/week/day/task coordinate does not exist in the plan."""


class PlanNotFoundError(PlanError, LookupError):
    """No stored plan matches the requested id."""


class PlanOwnershipError(PlanError, PermissionError):
    """A stored plan belongs to a different user."""


class PlanPersistenceError(PlanError):
    """The database rejected a plan write."""
