"""Shared fixtures for registry tests."""

from datetime import datetime, timedelta, timezone

import pytest

from proofstake.registry.core import Registry

from _constants import ALICE, BOB, MIN_STAKE, OWNER, VALIDATOR


class FixedClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def registry(clock):
    return Registry(
        owner=OWNER,
        minimum_stake=MIN_STAKE,
        validators=[VALIDATOR],
        clock=clock,
    )


@pytest.fixture
def funded(registry):
    """Registry with ALICE and BOB registered at the minimum stake."""
    registry.register_contributor(ALICE, MIN_STAKE)
    registry.register_contributor(BOB, MIN_STAKE)
    return registry
