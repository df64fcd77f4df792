"""
Shared fixtures.

No test talks to a real backend: profiles, transactions and targets live in
an InMemoryDataGateway, and time comes from a FixedClock.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fundlove.config import AppSettings
from fundlove.models.ledger import Profile
from fundlove.services.gateway import InMemoryDataGateway


T0 = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def alice():
    return Profile(id="user-alice", name="Alice", color="from-pink-500 to-pink-600")


@pytest.fixture
def bob():
    return Profile(id="user-bob", name="Bob", color="from-blue-500 to-blue-600")


@pytest.fixture
def gateway(alice, bob, clock):
    return InMemoryDataGateway([bob, alice], clock=clock)


@pytest.fixture
def app_settings():
    return AppSettings()
