"""
Work timing and SLA helpers.

Read-only derivations for display; nothing here is stored.
"""

import math
from datetime import datetime, timedelta
from typing import Optional, Union

from ..models.issue import Issue, IssueStatus

MS_PER_MINUTE = 60_000
MINUTES_PER_DAY = 24 * 60


def format_duration(ms: Union[int, float]) -> str:
    """
    Milliseconds -> compact "Xd Yh Zm".

    Floors to whole minutes, omits zero units and always keeps at least
    one unit. Zero, negative and non-finite input render as "0m".

        >>> format_duration(90_000_000)
        '1d 1h'
    """
    if not math.isfinite(ms) or ms <= 0:
        return "0m"

    total_minutes = int(ms // MS_PER_MINUTE)
    days, rest = divmod(total_minutes, MINUTES_PER_DAY)
    hours, minutes = divmod(rest, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes or not parts:
        parts.append(f"{minutes}m")
    return " ".join(parts)


def to_ms(delta: timedelta) -> float:
    return delta.total_seconds() * 1000


def work_duration(issue: Issue, now: datetime) -> Optional[timedelta]:
    """
    Elapsed time for in_progress issues, total time for closed ones.

    Returns None for open issues (no work recorded yet).
    """
    if issue.status == IssueStatus.IN_PROGRESS and issue.started_at:
        return now - issue.started_at
    if issue.status == IssueStatus.CLOSED and issue.started_at and issue.resolved_at:
        return issue.resolved_at - issue.started_at
    return None


def describe_work_timing(issue: Issue, now: datetime) -> Optional[str]:
    duration = work_duration(issue, now)
    if duration is None:
        return None
    label = "Elapsed" if issue.status == IssueStatus.IN_PROGRESS else "Time to fix"
    return f"{label} {format_duration(to_ms(duration))}"


def time_remaining(target_at: datetime, now: datetime) -> str:
    """Human SLA countdown, "Overdue" once the deadline has passed."""
    diff = target_at - now
    if diff <= timedelta(0):
        return "Overdue"

    total_minutes = int(diff.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 24:
        return f"{hours // 24}d {hours % 24}h remaining"
    return f"{hours}h {minutes}m remaining"


def is_overdue(issue: Issue, now: datetime) -> bool:
    return issue.status != IssueStatus.CLOSED and issue.target_at < now
