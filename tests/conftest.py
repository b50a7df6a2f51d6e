"""
Pytest configuration for FacilityFlow tests.

Provides a controllable clock, a cast of actors (one per permission class)
and ready-wired engine / ledger / service fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest

from facilityflow.models import Actor, Department, NewIssue, Priority, Role
from facilityflow.services import ActorDirectory, IssueService, LifecycleEngine
from facilityflow.storage import MemoryIssueStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# -----------------------------------------------------------------------------
# Actors
# -----------------------------------------------------------------------------
@pytest.fixture
def ops_manager():
    return Actor(id="ops-1", name="Layla Ops", role=Role.OPERATIONS_MANAGEMENT)


@pytest.fixture
def technician():
    return Actor(id="tech-42", name="Mike Johnson", role=Role.TECHNICIANS, department=Department.FACILITIES)


@pytest.fixture
def other_technician():
    return Actor(id="tech-7", name="Sarah Chen", role=Role.TECHNICIANS, department=Department.IT)


@pytest.fixture
def kitchen_staff():
    return Actor(id="kitchen-3", name="David Lopez", role=Role.KITCHEN_TEAM)


@pytest.fixture
def directory(ops_manager, technician, other_technician, kitchen_staff):
    return ActorDirectory([ops_manager, technician, other_technician, kitchen_staff])


# -----------------------------------------------------------------------------
# Engine / service
# -----------------------------------------------------------------------------
@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine(directory, clock):
    return LifecycleEngine(name_resolver=directory.display_name, clock=clock)


@pytest.fixture
def new_issue():
    return NewIssue(
        title="Broken AC",
        description="Air conditioning unit blowing warm air",
        area="Reception",
        department=Department.FACILITIES,
        priority=Priority.NORMAL,
    )


@pytest.fixture
def store():
    return MemoryIssueStore()


@pytest.fixture
def service(store, directory, engine, clock):
    return IssueService(store=store, directory=directory, engine=engine, clock=clock)
