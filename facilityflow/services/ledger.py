"""
FacilityFlow Activity Ledger

Append-only, per-issue log of lifecycle events.

- Entries are never edited or deleted (there is no API for either)
- Per issue, entries are ordered by timestamp, ties by insertion order
- Summary views take the N most recent entries and show them
  chronologically; older entries stay in the ledger
"""

import itertools
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from ..models.issue import ActivityAction, ActivityEntry, utcnow
from .errors import NotFound

logger = logging.getLogger(__name__)


class ActivityLedger:
    """
    In-memory activity ledger keyed by issue id.

    `issue_exists` is the storage-side existence check; when wired, appends
    for unknown issues fail with NotFound.
    """

    DEFAULT_RECENT = 3

    def __init__(
        self,
        issue_exists: Optional[Callable[[int], bool]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.issue_exists = issue_exists
        self.clock = clock or utcnow
        self._entries: Dict[int, List[ActivityEntry]] = {}
        self._sequence = itertools.count(1)

    def append(
        self,
        issue_id: int,
        actor_id: str,
        action: ActivityAction,
        details: Optional[str] = None,
        at: Optional[datetime] = None
    ) -> ActivityEntry:
        """Store one entry, stamped with the ledger clock unless `at` is given."""
        self._check_issue(issue_id)
        entry = ActivityEntry(
            id=next(self._sequence),
            issue_id=issue_id,
            at=at or self.clock(),
            actor_id=actor_id,
            action=action,
            details=details,
        )
        self._entries.setdefault(issue_id, []).append(entry)
        logger.debug(f"Ledger entry #{entry.id}: {action.value} by {actor_id} on issue #{issue_id}")
        return entry

    def record(self, entries: Iterable[ActivityEntry]) -> List[ActivityEntry]:
        """Append engine-produced entries, keeping their timestamps."""
        return [
            self.append(e.issue_id, e.actor_id, e.action, e.details, at=e.at)
            for e in entries
        ]

    def list_for_issue(self, issue_id: int) -> Iterator[ActivityEntry]:
        """
        Entries for an issue, newest first.

        Lazy: the sort happens on first iteration, over a snapshot of the
        entries stored at that moment.
        """
        def newest_first():
            stored = list(self._entries.get(issue_id, ()))
            yield from sorted(stored, key=lambda e: (e.at, e.id), reverse=True)

        return newest_first()

    def chronological(self, issue_id: int) -> List[ActivityEntry]:
        """Full history, oldest first."""
        entries = list(self.list_for_issue(issue_id))
        entries.reverse()
        return entries

    def recent(self, issue_id: int, limit: int = DEFAULT_RECENT) -> List[ActivityEntry]:
        """The `limit` most recent entries, in chronological order."""
        window = list(itertools.islice(self.list_for_issue(issue_id), max(limit, 0)))
        window.reverse()
        return window

    def count(self, issue_id: int) -> int:
        return len(self._entries.get(issue_id, ()))

    def _check_issue(self, issue_id: int) -> None:
        if self.issue_exists is not None and not self.issue_exists(issue_id):
            raise NotFound(f"Issue #{issue_id} does not exist.")
