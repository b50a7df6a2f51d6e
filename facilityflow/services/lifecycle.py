"""
FacilityFlow Lifecycle Engine

Validates and applies status transitions on a single issue.

Forward-only lifecycle:

    open ──start──▶ in_progress ──close──▶ closed
      └──────────────close───────────────────▲

Each operation takes the current issue and the acting actor and returns a
Transition: the updated issue plus the ledger entries to append. Inputs are
never mutated, and the clock is read exactly once per call so every entry of
one transition shares the same timestamp.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..models.issue import (
    ActivityAction,
    ActivityEntry,
    Actor,
    Issue,
    IssueStatus,
    NewIssue,
    utcnow,
)
from .errors import InvalidTransition, ValidationError
from .permissions import PermissionGuard

logger = logging.getLogger(__name__)

NameResolver = Callable[[str], Optional[str]]

UNASSIGNED = "Unassigned"
REQUIRED_FIELDS = ("title", "description", "area", "department")


@dataclass
class Transition:
    """Result of one engine operation."""
    issue: Issue
    entries: List[ActivityEntry] = field(default_factory=list)


class LifecycleEngine:
    """
    Pure lifecycle rules.

    Rules:
    1. New issues are open with no timing set
    2. Assignment never changes status
    3. start_work only from open
    4. close from open or in_progress; a missing start is filled in
       ("auto-start") so a completion always follows a start
    5. Permission checks happen here, for every caller
    """

    DEFAULT_SLA_HOURS = 72

    def __init__(
        self,
        name_resolver: Optional[NameResolver] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sla_hours: int = DEFAULT_SLA_HOURS,
        guard: Optional[PermissionGuard] = None
    ):
        self.name_resolver = name_resolver
        self.clock = clock or utcnow
        self.sla = timedelta(hours=sla_hours)
        self.guard = guard or PermissionGuard()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def validate(self, new_issue: NewIssue) -> None:
        """Raise ValidationError naming every blank required field."""
        missing = [
            name for name in REQUIRED_FIELDS
            if not _filled(getattr(new_issue, name))
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                fields=missing
            )

    def create(self, new_issue: NewIssue, actor: Actor, issue_id: int) -> Transition:
        """
        Build a new open issue reported by `actor`.

        Any authenticated actor may report. Yields a `created` entry and,
        when an assignee is supplied, an `assigned` entry naming them.
        """
        self.validate(new_issue)

        now = self.clock()
        issue = Issue(
            id=issue_id,
            title=new_issue.title.strip(),
            description=new_issue.description.strip(),
            area=new_issue.area.strip(),
            department=new_issue.department,
            priority=new_issue.priority,
            status=IssueStatus.OPEN,
            created_at=now,
            target_at=now + self.sla,
            created_by=actor.id,
            assigned_tech_id=new_issue.assigned_tech_id or None,
        )

        entries = [self._entry(issue, actor, now, ActivityAction.CREATED, "Issue created")]
        if issue.assigned_tech_id:
            name = self._name(issue.assigned_tech_id)
            entries.append(self._entry(
                issue, actor, now, ActivityAction.ASSIGNED, f"Initial assignee: {name}"
            ))

        logger.info(f"Issue #{issue.id} reported by {actor.id}")
        return Transition(issue, entries)

    def assign(self, issue: Issue, actor: Actor, assignee_id: Optional[str]) -> Transition:
        """
        Change (or clear) the assignee.

        Reassigning to the current assignee still records an entry; one
        entry per assignment action is kept.
        """
        self.guard.require_assign(actor, issue)

        now = self.clock()
        assignee_id = assignee_id or None
        previous = self._name(issue.assigned_tech_id) if issue.assigned_tech_id else UNASSIGNED
        following = self._name(assignee_id) if assignee_id else UNASSIGNED

        updated = issue.model_copy(update={"assigned_tech_id": assignee_id})
        entry = self._entry(
            issue, actor, now, ActivityAction.ASSIGNED,
            f"Assignee changed: {previous} → {following}"
        )

        logger.info(f"Issue #{issue.id} assignee {issue.assigned_tech_id} -> {assignee_id} by {actor.id}")
        return Transition(updated, [entry])

    def start_work(self, issue: Issue, actor: Actor) -> Transition:
        """Move an open issue to in_progress."""
        if issue.status != IssueStatus.OPEN:
            raise InvalidTransition(
                f"Cannot start issue #{issue.id}: status is {issue.status.value}, expected open."
            )
        self.guard.require_work(actor, issue, "start work on")

        now = self.clock()
        entries = []
        changes = {"status": IssueStatus.IN_PROGRESS}

        if issue.started_at is None:
            changes["started_at"] = now
            entries.append(self._entry(
                issue, actor, now, ActivityAction.WORK_STARTED, "Started work"
            ))
        else:
            logger.warning(f"Issue #{issue.id} is open but already has started_at; keeping it")

        entries.append(self._status_entry(issue, actor, now, IssueStatus.IN_PROGRESS))

        logger.info(f"Issue #{issue.id}: open -> in_progress by {actor.id}")
        return Transition(issue.model_copy(update=changes), entries)

    def close(self, issue: Issue, actor: Actor) -> Transition:
        """
        Close an open or in_progress issue.

        Same permission as start_work.
        """
        if issue.status == IssueStatus.CLOSED:
            raise InvalidTransition(f"Issue #{issue.id} is already closed.")
        self.guard.require_work(actor, issue, "close")

        now = self.clock()
        entries = []
        changes = {"status": IssueStatus.CLOSED, "resolved_at": now}

        if issue.started_at is None:
            changes["started_at"] = now
            entries.append(self._entry(
                issue, actor, now, ActivityAction.WORK_STARTED, "Auto-start on close"
            ))
        else:
            if issue.status == IssueStatus.OPEN:
                logger.warning(
                    f"Issue #{issue.id} is open but already has started_at; "
                    "closing without a work_started entry"
                )
            if issue.started_at > now:
                # Clock skew between writers; keep resolved_at >= started_at.
                changes["resolved_at"] = issue.started_at

        entries.append(self._entry(
            issue, actor, now, ActivityAction.WORK_COMPLETED, "Marked complete"
        ))
        entries.append(self._status_entry(issue, actor, now, IssueStatus.CLOSED))

        logger.info(f"Issue #{issue.id}: {issue.status.value} -> closed by {actor.id}")
        return Transition(issue.model_copy(update=changes), entries)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _name(self, actor_id: str) -> str:
        """Best-effort display name; falls back to the raw identifier."""
        if self.name_resolver is None:
            return actor_id
        try:
            name = self.name_resolver(actor_id)
        except Exception as exc:
            logger.warning(f"Name lookup failed for {actor_id}: {exc}")
            return actor_id
        return name or actor_id

    def _status_entry(
        self,
        issue: Issue,
        actor: Actor,
        at: datetime,
        status: IssueStatus
    ) -> ActivityEntry:
        return self._entry(
            issue, actor, at, ActivityAction.STATUS_CHANGED, f"Status → {status.value}"
        )

    @staticmethod
    def _entry(
        issue: Issue,
        actor: Actor,
        at: datetime,
        action: ActivityAction,
        details: Optional[str] = None
    ) -> ActivityEntry:
        return ActivityEntry(
            issue_id=issue.id,
            at=at,
            actor_id=actor.id,
            action=action,
            details=details,
        )


def _filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True
