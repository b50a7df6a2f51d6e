"""
Actor directory (identity collaborator).

Holds user profiles and resolves display names for activity details.
Name lookups are best effort: callers get None, never an exception.
"""

import logging
from typing import Dict, List, Optional

from ..models.issue import Actor, Department, Role
from .errors import NotFound

logger = logging.getLogger(__name__)


class ActorDirectory:
    """In-memory profile store keyed by actor id."""

    def __init__(self, actors: Optional[List[Actor]] = None):
        self._actors: Dict[str, Actor] = {}
        for actor in actors or []:
            self.upsert(actor)

    def upsert(self, actor: Actor) -> Actor:
        """Create or replace a profile (first login or profile edits)."""
        actor = actor.model_copy(update={
            "name": actor.name.strip(),
            "email": actor.email.strip().lower(),
            "phone": actor.phone.strip(),
        })
        self._actors[actor.id] = actor
        return actor

    def get(self, actor_id: str) -> Actor:
        actor = self._actors.get(actor_id)
        if actor is None:
            raise NotFound(f"Actor {actor_id} does not exist.")
        return actor

    def find(self, actor_id: str) -> Optional[Actor]:
        return self._actors.get(actor_id)

    def display_name(self, actor_id: str) -> Optional[str]:
        actor = self._actors.get(actor_id)
        if actor is None:
            logger.debug(f"No profile for {actor_id}")
            return None
        return actor.name or None

    def technicians(self, department: Optional[Department] = None) -> List[Actor]:
        """
        Technicians, those of `department` first.

        Mirrors the assignment picker: same-department technicians lead,
        everyone else follows.
        """
        techs = [a for a in self._actors.values() if a.role == Role.TECHNICIANS]
        if department is None:
            return techs
        same = [t for t in techs if t.department == department]
        other = [t for t in techs if t.department != department]
        return same + other
