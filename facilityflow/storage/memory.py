"""
In-memory issue store.

Reference persistence collaborator: keeps issues in a dict and commits an
issue write together with its ledger entries as one unit.
"""

import asyncio
import itertools
import logging
from typing import Dict, Iterable, List, Optional

from ..models.issue import ActivityEntry, Issue, IssueStatus, Priority
from ..services.errors import NotFound
from ..services.ledger import ActivityLedger

logger = logging.getLogger(__name__)


class MemoryIssueStore:
    """
    Issue rows plus the activity ledger.

    Writes go through `commit`, which holds a store-wide lock so readers
    never observe an issue update without its entries.
    """

    def __init__(self, ledger: Optional[ActivityLedger] = None):
        self._issues: Dict[int, Issue] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self.ledger = ledger or ActivityLedger()
        if self.ledger.issue_exists is None:
            self.ledger.issue_exists = self.exists

    def next_id(self) -> int:
        return next(self._ids)

    def exists(self, issue_id: int) -> bool:
        return issue_id in self._issues

    async def get(self, issue_id: int) -> Issue:
        issue = self._issues.get(issue_id)
        if issue is None:
            raise NotFound(f"Issue #{issue_id} does not exist.")
        return issue

    async def list(
        self,
        status: Optional[IssueStatus] = None,
        priority: Optional[Priority] = None
    ) -> List[Issue]:
        """Issues newest first, optionally filtered."""
        issues = [
            i for i in self._issues.values()
            if (status is None or i.status == status)
            and (priority is None or i.priority == priority)
        ]
        issues.sort(key=lambda i: (i.created_at, i.id), reverse=True)
        return issues

    async def commit(self, issue: Issue, entries: Iterable[ActivityEntry]) -> List[ActivityEntry]:
        """Insert or update `issue` and append its entries as one unit."""
        entries = list(entries)
        strays = [e for e in entries if e.issue_id != issue.id]
        if strays:
            raise ValueError(
                f"Cannot commit entries for issue #{strays[0].issue_id} with issue #{issue.id}"
            )

        async with self._lock:
            self._issues[issue.id] = issue
            stored = self.ledger.record(entries)
        logger.debug(f"Committed issue #{issue.id} with {len(stored)} ledger entries")
        return stored
