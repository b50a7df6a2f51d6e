"""
FacilityFlow Models
"""

from .issue import (
    # Enums
    Role,
    Department,
    Priority,
    IssueStatus,
    ActivityAction,

    # Core models
    Issue,
    ActivityEntry,
    Actor,

    # Input models
    NewIssue,

    utcnow,
)

__all__ = [
    "Role", "Department", "Priority", "IssueStatus", "ActivityAction",
    "Issue", "ActivityEntry", "Actor",
    "NewIssue",
    "utcnow",
]
