"""
FacilityFlow Permission Policy

Every permission decision lives here, not in the presentation layer.

Rules:
1. Anyone authenticated may report an issue
2. Operations Management and Technicians may assign
3. Operations Management may start or close any issue
4. Technicians may start or close only issues assigned to them
5. Every other role may only report
"""

from typing import Optional

from ..models.issue import Actor, Issue, Role
from .errors import PermissionDenied


ASSIGN_ROLES = frozenset({Role.OPERATIONS_MANAGEMENT, Role.TECHNICIANS})


def can_assign(role: Role) -> bool:
    return role in ASSIGN_ROLES


def can_work(role: Role, actor_id: Optional[str], assignee_id: Optional[str]) -> bool:
    """Start/close rule: managers always, technicians on their own issues."""
    if role == Role.OPERATIONS_MANAGEMENT:
        return True
    if role == Role.TECHNICIANS:
        return assignee_id is not None and actor_id == assignee_id
    return False


class PermissionGuard:
    """
    Raises PermissionDenied before a transition is applied.

    Use before:
    - Changing the assignee
    - Starting work
    - Closing an issue
    """

    def require_assign(self, actor: Actor, issue: Issue) -> None:
        if not can_assign(actor.role):
            raise PermissionDenied(
                f"Role '{actor.role.value}' cannot assign issue #{issue.id}. "
                "Only Operations Management or Technicians can assign."
            )

    def require_work(self, actor: Actor, issue: Issue, action: str) -> None:
        if not can_work(actor.role, actor.id, issue.assigned_tech_id):
            raise PermissionDenied(
                f"{actor.name} ({actor.role.value}) cannot {action} issue #{issue.id}. "
                "Only Operations Management or the assigned technician can."
            )
