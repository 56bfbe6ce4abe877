"""Contribution registry.

Tracks staked contributors and their submitted contributions, and lets
a trusted validator set score each contribution once, crediting a
reward derived from its type and quality score.

- models: state records, notifications, snapshot
- core: the Registry and its operations
- rewards: integer reward / reputation arithmetic
- events: ordered notification log
- custody: where stakes and deposits are held
- auth: caller sessions and role-gated access by token
"""

from .auth import AuthenticatedRegistry, CallerAuthenticator, Role
from .core import INITIAL_REPUTATION, Registry
from .custody import Custody, LocalCustody
from .errors import (
    AlreadyRegistered,
    AlreadyValidated,
    AuthorizationError,
    EmptyDataReference,
    InsufficientStake,
    InvalidAmount,
    InvalidContributionId,
    InvalidContributionType,
    InvalidQualityScore,
    NotActiveContributor,
    RateLimited,
    RegistryError,
    StateConflictError,
    Unauthorized,
    ValidationError,
)
from .events import EventFeed, EventLog
from .models import (
    NULL_ADDRESS,
    REWARD_UNIT,
    Contribution,
    ContributionSubmitted,
    ContributionType,
    ContributionValidated,
    Contributor,
    ContributorRegistered,
    RegistrySnapshot,
    RewardDistributed,
)
from .rewards import BASE_REWARDS, compute_reward, next_reputation

__all__ = [
    "BASE_REWARDS",
    "INITIAL_REPUTATION",
    "NULL_ADDRESS",
    "REWARD_UNIT",
    "AlreadyRegistered",
    "AlreadyValidated",
    "AuthenticatedRegistry",
    "AuthorizationError",
    "CallerAuthenticator",
    "Contribution",
    "ContributionSubmitted",
    "ContributionType",
    "ContributionValidated",
    "Contributor",
    "ContributorRegistered",
    "Custody",
    "EmptyDataReference",
    "EventFeed",
    "EventLog",
    "InsufficientStake",
    "InvalidAmount",
    "InvalidContributionId",
    "InvalidContributionType",
    "InvalidQualityScore",
    "LocalCustody",
    "NotActiveContributor",
    "RateLimited",
    "Registry",
    "RegistryError",
    "RegistrySnapshot",
    "RewardDistributed",
    "Role",
    "StateConflictError",
    "Unauthorized",
    "ValidationError",
    "compute_reward",
    "next_reputation",
]
