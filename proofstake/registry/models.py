"""Pydantic models for the contribution registry.

Two kinds of records:
- State records: Contributor (one per identity), Contribution (one per submission)
- Notifications: append-only events emitted by successful operations
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Units - all amounts are integers in the smallest reward unit
# ---------------------------------------------------------------------------

REWARD_UNIT = 10**18

# Identity used by zero-valued default records
NULL_ADDRESS = ""


class ContributionType(str, Enum):
    """Closed set of work categories a contributor can submit."""

    COMPUTE_POWER = "ComputePower"
    DATASET = "Dataset"
    VALIDATION = "Validation"


# ---------------------------------------------------------------------------
# State records
# ---------------------------------------------------------------------------


class Contributor(BaseModel):
    """Registered, staked identity.

    A record with address == NULL_ADDRESS is the default returned for
    unknown identities.
    """

    address: str = NULL_ADDRESS
    staked_amount: int = 0
    total_contributions: int = 0
    reputation_score: int = Field(default=0, ge=0, le=100)
    total_rewards_earned: int = 0
    is_active: bool = False

    @property
    def exists(self) -> bool:
        return self.address != NULL_ADDRESS


class Contribution(BaseModel):
    """One submitted unit of work, scored at most once."""

    contribution_id: int = 0
    contributor: str = NULL_ADDRESS
    contribution_type: ContributionType = ContributionType.COMPUTE_POWER
    data_hash: str = ""
    quality_score: int = Field(default=0, ge=0, le=100)
    reward_amount: int = 0
    timestamp: datetime | None = None
    validated: bool = False


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class _Notification(BaseModel):
    sequence: int = 0
    committed_at: datetime | None = None


class ContributorRegistered(_Notification):
    name: Literal["ContributorRegistered"] = "ContributorRegistered"
    address: str
    amount: int


class ContributionSubmitted(_Notification):
    name: Literal["ContributionSubmitted"] = "ContributionSubmitted"
    contribution_id: int
    contributor: str
    contribution_type: ContributionType


class ContributionValidated(_Notification):
    name: Literal["ContributionValidated"] = "ContributionValidated"
    contribution_id: int
    quality_score: int


class RewardDistributed(_Notification):
    name: Literal["RewardDistributed"] = "RewardDistributed"
    address: str
    amount: int


Notification = Union[
    ContributorRegistered,
    ContributionSubmitted,
    ContributionValidated,
    RewardDistributed,
]


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class RegistrySnapshot(BaseModel):
    """Consistent point-in-time copy of the whole registry state."""

    owner: str
    minimum_stake: int
    validators: list[str] = Field(default_factory=list)
    contribution_counter: int = 0
    total_rewards_pool: int = 0
    balance: int = 0
    contributors: list[Contributor] = Field(default_factory=list)
    contributions: list[Contribution] = Field(default_factory=list)
    taken_at: datetime


__all__ = [
    "NULL_ADDRESS",
    "REWARD_UNIT",
    "Contribution",
    "ContributionSubmitted",
    "ContributionType",
    "ContributionValidated",
    "Contributor",
    "ContributorRegistered",
    "Notification",
    "RegistrySnapshot",
    "RewardDistributed",
]
