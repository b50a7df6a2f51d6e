"""
FacilityFlow Issue Service

Orchestrates one mutation end to end:

    resolve actor -> lock issue -> fresh read -> engine -> commit -> notify

Preconditions are evaluated by the engine against the freshest read taken
while holding the per-issue lock, so two actors racing to start the same
issue cannot both succeed.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..models.issue import (
    ActivityEntry,
    Issue,
    IssueStatus,
    NewIssue,
    Priority,
    utcnow,
)
from .directory import ActorDirectory
from .lifecycle import LifecycleEngine, Transition
from .timing import is_overdue

logger = logging.getLogger(__name__)

Notifier = Callable[[Issue, List[ActivityEntry]], Any]


@dataclass
class IssueStats:
    total: int = 0
    open: int = 0
    in_progress: int = 0
    closed: int = 0
    overdue: int = 0


class IssueService:
    """
    Application-facing issue operations.

    Collaborators:
    - store: persistence (get / list / commit / next_id, plus its ledger)
    - directory: identity (actor lookup and display names)
    - engine: lifecycle rules
    - notifier: optional, told about every committed change
    """

    def __init__(
        self,
        store,
        directory: ActorDirectory,
        engine: Optional[LifecycleEngine] = None,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.ledger = store.ledger
        self.directory = directory
        self.engine = engine or LifecycleEngine(name_resolver=directory.display_name)
        self.notifier = notifier
        self.clock = clock or utcnow
        self._locks: Dict[int, asyncio.Lock] = {}

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def report(self, new_issue: NewIssue, actor_id: str) -> Issue:
        """Create an issue reported by `actor_id`."""
        actor = self.directory.get(actor_id)
        if new_issue.assigned_tech_id:
            # Unknown assignees are rejected up front; names stay best effort.
            self.directory.get(new_issue.assigned_tech_id)

        self.engine.validate(new_issue)
        transition = self.engine.create(new_issue, actor, self.store.next_id())
        return await self._commit(transition)

    async def assign(self, issue_id: int, actor_id: str, assignee_id: Optional[str]) -> Issue:
        actor = self.directory.get(actor_id)
        if assignee_id:
            self.directory.get(assignee_id)

        async with await self._lock_for(issue_id):
            issue = await self.store.get(issue_id)
            transition = self.engine.assign(issue, actor, assignee_id)
            return await self._commit(transition)

    async def start_work(self, issue_id: int, actor_id: str) -> Issue:
        actor = self.directory.get(actor_id)
        async with await self._lock_for(issue_id):
            issue = await self.store.get(issue_id)
            transition = self.engine.start_work(issue, actor)
            return await self._commit(transition)

    async def close(self, issue_id: int, actor_id: str) -> Issue:
        actor = self.directory.get(actor_id)
        async with await self._lock_for(issue_id):
            issue = await self.store.get(issue_id)
            transition = self.engine.close(issue, actor)
            return await self._commit(transition)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, issue_id: int) -> Issue:
        return await self.store.get(issue_id)

    async def list(
        self,
        status: Optional[IssueStatus] = None,
        priority: Optional[Priority] = None
    ) -> List[Issue]:
        return await self.store.list(status=status, priority=priority)

    async def activity(self, issue_id: int, recent: Optional[int] = None) -> List[ActivityEntry]:
        """
        Activity for an issue in chronological order.

        With `recent`, only the most recent N entries are returned (summary
        view); otherwise the full history.
        """
        await self.store.get(issue_id)
        if recent is not None:
            return self.ledger.recent(issue_id, recent)
        return self.ledger.chronological(issue_id)

    async def stats(self, now: Optional[datetime] = None) -> IssueStats:
        now = now or self.clock()
        stats = IssueStats()
        for issue in await self.store.list():
            stats.total += 1
            if issue.status == IssueStatus.OPEN:
                stats.open += 1
            elif issue.status == IssueStatus.IN_PROGRESS:
                stats.in_progress += 1
            else:
                stats.closed += 1
            if is_overdue(issue, now):
                stats.overdue += 1
        return stats

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _lock_for(self, issue_id: int) -> asyncio.Lock:
        """Per-issue lock; only issues that exist get one."""
        await self.store.get(issue_id)
        return self._locks.setdefault(issue_id, asyncio.Lock())

    async def _commit(self, transition: Transition) -> Issue:
        stored = await self.store.commit(transition.issue, transition.entries)
        await self._notify(transition.issue, stored)
        return transition.issue

    async def _notify(self, issue: Issue, entries: List[ActivityEntry]) -> None:
        if self.notifier is None:
            return
        try:
            result = self.notifier(issue, entries)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.warning(f"Notifier failed for issue #{issue.id}: {exc}")
