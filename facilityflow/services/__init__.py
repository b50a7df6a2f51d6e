"""
FacilityFlow Engine Services

Core business logic for issue lifecycle and activity logging.
"""

from .errors import (
    FacilityFlowError,
    PermissionDenied,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from .permissions import PermissionGuard, can_assign, can_work
from .lifecycle import LifecycleEngine, Transition
from .ledger import ActivityLedger
from .directory import ActorDirectory
from .issues import IssueService, IssueStats
from .timing import format_duration, work_duration, describe_work_timing, time_remaining, is_overdue

__all__ = [
    # Errors
    "FacilityFlowError", "PermissionDenied", "InvalidTransition", "NotFound", "ValidationError",

    # Lifecycle (the core)
    "LifecycleEngine", "Transition", "PermissionGuard", "can_assign", "can_work",

    # Activity ledger
    "ActivityLedger",

    # Collaborators and orchestration
    "ActorDirectory", "IssueService", "IssueStats",

    # Timing
    "format_duration", "work_duration", "describe_work_timing", "time_remaining", "is_overdue",
]
