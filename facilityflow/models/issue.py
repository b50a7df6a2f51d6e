"""
FacilityFlow Issue Model

Core principles:
1. Issue = facility problem report, tracked until closed
2. Status only moves forward: open -> in_progress -> closed
3. Activity entries are immutable facts, never edited or deleted
4. Roles are a closed set; permissions are decided on the role, not on strings
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class Role(str, Enum):
    OPERATIONS_MANAGEMENT = "Operations Management"
    KITCHEN_TEAM = "Kitchen team"
    CUSTOMER_SERVICE_TEAM = "Customer service team"
    MARKETING_TEAM = "Marketing team"
    PROCUREMENT_TEAM = "Procurement team"
    FACILITY_TEAM = "Facility team"
    FINANCE_TEAM = "Finance team"
    IT_TEAM = "IT team"
    CLEANING_TEAM = "Cleaning team"
    TECHNICIANS = "Technicians"
    PACKAGING_TEAM = "Packaging team"
    LOGISTICS_TEAM = "Logistics team"


class Department(str, Enum):
    OPERATIONS = "Operations"
    FACILITIES = "Facilities"
    KITCHEN = "Kitchen"
    LOGISTICS = "Logistics"
    IT = "IT"
    CLEANING = "Cleaning"
    HYGIENE_AND_SAFETY = "Hygiene and Safety"


class Priority(str, Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    LOW = "low"


class IssueStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class ActivityAction(str, Enum):
    CREATED = "created"
    ASSIGNED = "assigned"
    STATUS_CHANGED = "status_changed"
    WORK_STARTED = "work_started"
    WORK_COMPLETED = "work_completed"


# =============================================================================
# CORE MODELS
# =============================================================================

class Issue(BaseModel):
    """
    A trackable facility problem report.

    Timestamp invariants (kept by the lifecycle engine):
    - open:        started_at is None, resolved_at is None
    - in_progress: started_at set,     resolved_at is None
    - closed:      started_at set,     resolved_at set and >= started_at
    """
    id: int
    title: str
    description: str
    area: str
    department: Department
    priority: Priority = Priority.NORMAL
    status: IssueStatus = IssueStatus.OPEN

    created_at: datetime
    target_at: datetime  # SLA deadline
    created_by: str
    assigned_tech_id: Optional[str] = None

    # Work timing
    started_at: Optional[datetime] = None  # set when work starts
    resolved_at: Optional[datetime] = None  # set when closed


class ActivityEntry(BaseModel):
    """
    One immutable fact about an issue mutation.

    `id` is the ledger sequence number, assigned on append. Entries
    produced by the engine carry None until the ledger stores them.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    issue_id: int
    at: datetime
    actor_id: str
    action: ActivityAction
    details: Optional[str] = None


class Actor(BaseModel):
    """An authenticated party (profile) holding exactly one role."""
    id: str
    name: str
    role: Role
    email: str = ""
    phone: str = ""  # +974XXXXXXXX
    department: Optional[Department] = None  # technicians only
    created_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# INPUT MODELS
# =============================================================================

class NewIssue(BaseModel):
    """Issue report as submitted by the reporter."""
    title: str = ""
    description: str = ""
    area: str = ""
    department: Optional[Department] = None
    priority: Priority = Priority.NORMAL
    assigned_tech_id: Optional[str] = None  # optional pre-assignment
