"""Contribution registry: contributors, stakes, contributions, rewards.

All state lives in one Registry instance. Every public operation takes
the registry lock for its whole duration, runs its guard checks first
and only then mutates, so operations are serialized and a rejected
operation never leaves partial updates behind.

Notifications produced by an operation are published to the registry's
private EventLog after its mutations are in place, still under the lock,
so the log order is the commit order. Observers read it through the
read-only EventFeed returned by ``Registry.events``.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable

import bittensor as bt

from .custody import Custody, LocalCustody
from .errors import (
    AlreadyRegistered,
    AlreadyValidated,
    EmptyDataReference,
    InsufficientStake,
    InvalidAmount,
    InvalidContributionId,
    InvalidContributionType,
    InvalidQualityScore,
    NotActiveContributor,
    RegistryError,
    Unauthorized,
)
from .events import EventFeed, EventLog
from .models import (
    Contribution,
    ContributionSubmitted,
    ContributionType,
    ContributionValidated,
    Contributor,
    ContributorRegistered,
    Notification,
    RegistrySnapshot,
    RewardDistributed,
)
from .rewards import compute_reward, is_valid_quality_score, next_reputation

if TYPE_CHECKING:
    from proofstake.config import RegistrySettings

INITIAL_REPUTATION = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _short(address: str) -> str:
    return str(address)[:16] if address else "none"


def _is_amount(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class Registry:
    """Ledger of contributors and contributions mediated by validators.

    The caller identity of every mutating operation is passed in
    explicitly and is assumed to be authenticated already (see
    ``proofstake.registry.auth``).

    Known custody risk: ``withdraw`` moves the whole held balance to the
    owner, contributor stakes included. Stake bookkeeping is not
    consulted.
    """

    def __init__(
        self,
        owner: str,
        minimum_stake: int,
        validators: Iterable[str] = (),
        custody: Custody | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if not owner:
            raise ValueError("owner address is required")
        if not _is_amount(minimum_stake):
            raise ValueError(f"minimum_stake must be a non-negative int, got {minimum_stake!r}")

        self._owner = owner
        self._minimum_stake = minimum_stake
        self._validators: set[str] = {v for v in validators if v}
        self._custody: Custody = custody if custody is not None else LocalCustody()
        self._events = EventLog()
        self._feed = EventFeed(self._events)
        self._clock = clock or _utcnow

        self._contributors: dict[str, Contributor] = {}
        self._contributions: dict[int, Contribution] = {}
        self._contribution_counter = 0
        self._total_rewards_pool = 0

        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: RegistrySettings, **kwargs) -> Registry:
        return cls(
            owner=settings.owner,
            minimum_stake=settings.minimum_stake,
            validators=settings.validators,
            **kwargs,
        )

    # -- Guards --

    def _reject(self, op: str, caller: str, error: RegistryError) -> RegistryError:
        bt.logging.warning({"registry": {"event": "rejected", "op": op, "caller": _short(caller), "reason": error.code, "detail": str(error)}})
        return error

    def _require_caller(self, op: str, caller: str) -> None:
        if not caller or not isinstance(caller, str):
            raise self._reject(op, caller, Unauthorized("caller identity is required"))

    def _require_owner(self, op: str, caller: str) -> None:
        self._require_caller(op, caller)
        if caller != self._owner:
            raise self._reject(op, caller, Unauthorized(f"{op} is restricted to the owner"))

    def _require_validator(self, op: str, caller: str) -> None:
        self._require_caller(op, caller)
        if caller not in self._validators:
            raise self._reject(op, caller, Unauthorized(f"{op} is restricted to validators"))

    def _require_active_contributor(self, op: str, caller: str) -> Contributor:
        self._require_caller(op, caller)
        contributor = self._contributors.get(caller)
        if contributor is None or not contributor.is_active:
            raise self._reject(op, caller, NotActiveContributor("caller is not an active contributor"))
        return contributor

    def _require_amount(self, op: str, caller: str, value: object) -> None:
        if not _is_amount(value):
            raise self._reject(op, caller, InvalidAmount(f"amount must be a non-negative int, got {value!r}"))

    def _commit(self, committed_at: datetime, *batch: Notification) -> None:
        self._events.publish(batch, committed_at)

    # -- Core operations --

    def register_contributor(self, caller: str, stake_amount: int) -> Contributor:
        """Register ``caller`` with ``stake_amount`` locked in custody.

        A deactivated identity may register again; the new record
        replaces the old one, resetting reputation and counters.
        """
        op = "register_contributor"
        with self._lock:
            self._require_caller(op, caller)
            self._require_amount(op, caller, stake_amount)
            if stake_amount < self._minimum_stake:
                raise self._reject(op, caller, InsufficientStake(
                    f"stake {stake_amount} below minimum {self._minimum_stake}"
                ))
            existing = self._contributors.get(caller)
            if existing is not None and existing.is_active:
                raise self._reject(op, caller, AlreadyRegistered("caller is already an active contributor"))

            self._custody.credit(stake_amount)
            contributor = Contributor(
                address=caller,
                staked_amount=stake_amount,
                reputation_score=INITIAL_REPUTATION,
                is_active=True,
            )
            self._contributors[caller] = contributor
            self._commit(self._clock(), ContributorRegistered(address=caller, amount=stake_amount))

            bt.logging.info({"registry": {"event": "contributor_registered", "address": _short(caller), "amount": stake_amount, "reregistered": existing is not None}})
            return contributor.model_copy()

    def submit_contribution(
        self,
        caller: str,
        contribution_type: ContributionType | str,
        data_hash: str,
    ) -> int:
        """Record a new contribution and return its id."""
        op = "submit_contribution"
        with self._lock:
            contributor = self._require_active_contributor(op, caller)
            try:
                ctype = ContributionType(contribution_type)
            except ValueError:
                raise self._reject(op, caller, InvalidContributionType(
                    f"unknown contribution type {contribution_type!r}"
                )) from None
            if not isinstance(data_hash, str) or not data_hash:
                raise self._reject(op, caller, EmptyDataReference("data_hash must be a non-empty string"))

            now = self._clock()
            self._contribution_counter += 1
            contribution_id = self._contribution_counter
            self._contributions[contribution_id] = Contribution(
                contribution_id=contribution_id,
                contributor=caller,
                contribution_type=ctype,
                data_hash=data_hash,
                timestamp=now,
            )
            contributor.total_contributions += 1
            self._commit(now, ContributionSubmitted(
                contribution_id=contribution_id,
                contributor=caller,
                contribution_type=ctype,
            ))

            bt.logging.info({"registry": {"event": "contribution_submitted", "contribution_id": contribution_id, "contributor": _short(caller), "type": ctype.value}})
            return contribution_id

    def distribute_rewards(
        self,
        caller: str,
        contribution_id: int,
        quality_score: int,
    ) -> Contribution:
        """Score a pending contribution and credit its reward.

        Returns the scored contribution.
        """
        op = "distribute_rewards"
        with self._lock:
            self._require_validator(op, caller)
            if (
                isinstance(contribution_id, bool)
                or not isinstance(contribution_id, int)
                or not 1 <= contribution_id <= self._contribution_counter
            ):
                raise self._reject(op, caller, InvalidContributionId(
                    f"contribution id {contribution_id!r} out of range 1..{self._contribution_counter}"
                ))
            if not is_valid_quality_score(quality_score):
                raise self._reject(op, caller, InvalidQualityScore(
                    f"quality score {quality_score!r} out of range 1..100"
                ))
            contribution = self._contributions[contribution_id]
            if contribution.validated:
                raise self._reject(op, caller, AlreadyValidated(
                    f"contribution {contribution_id} has already been scored"
                ))

            reward = compute_reward(contribution.contribution_type, quality_score)
            contributor = self._contributors[contribution.contributor]

            contribution.quality_score = quality_score
            contribution.reward_amount = reward
            contribution.validated = True

            contributor.total_rewards_earned += reward
            contributor.reputation_score = next_reputation(contributor.reputation_score, quality_score)

            self._total_rewards_pool += reward
            self._commit(
                self._clock(),
                ContributionValidated(contribution_id=contribution_id, quality_score=quality_score),
                RewardDistributed(address=contributor.address, amount=reward),
            )

            bt.logging.info({"registry": {"event": "reward_distributed", "contribution_id": contribution_id, "validator": _short(caller), "contributor": _short(contributor.address), "quality_score": quality_score, "reward": reward, "reputation": contributor.reputation_score}})
            return contribution.model_copy()

    # -- Administration --

    def add_validator(self, caller: str, address: str) -> None:
        op = "add_validator"
        with self._lock:
            self._require_owner(op, caller)
            self._validators.add(address)
            bt.logging.info({"registry": {"event": "validator_added", "address": _short(address)}})

    def remove_validator(self, caller: str, address: str) -> None:
        op = "remove_validator"
        with self._lock:
            self._require_owner(op, caller)
            self._validators.discard(address)
            bt.logging.info({"registry": {"event": "validator_removed", "address": _short(address)}})

    def update_minimum_stake(self, caller: str, value: int) -> None:
        """Change the threshold for future registrations only."""
        op = "update_minimum_stake"
        with self._lock:
            self._require_owner(op, caller)
            self._require_amount(op, caller, value)
            previous, self._minimum_stake = self._minimum_stake, value
            bt.logging.info({"registry": {"event": "minimum_stake_updated", "previous": previous, "current": value}})

    def deactivate_contributor(self, caller: str, address: str) -> None:
        """Bar ``address`` from submitting.

        The stake stays in custody and existing contributions can still
        be scored.
        """
        op = "deactivate_contributor"
        with self._lock:
            self._require_owner(op, caller)
            contributor = self._contributors.get(address)
            if contributor is None:
                return
            contributor.is_active = False
            bt.logging.info({"registry": {"event": "contributor_deactivated", "address": _short(address)}})

    def deposit(self, caller: str, amount: int) -> int:
        """Permissionless funding. Returns the new reward pool total."""
        op = "deposit"
        with self._lock:
            self._require_caller(op, caller)
            self._require_amount(op, caller, amount)
            self._custody.credit(amount)
            self._total_rewards_pool += amount
            bt.logging.info({"registry": {"event": "deposit", "from": _short(caller), "amount": amount, "pool": self._total_rewards_pool}})
            return self._total_rewards_pool

    def withdraw(self, caller: str) -> int:
        """Send the entire held balance to the owner. Returns the amount."""
        op = "withdraw"
        with self._lock:
            self._require_owner(op, caller)
            amount = self._custody.transfer_all(self._owner)
            bt.logging.warning({"registry": {"event": "withdraw", "owner": _short(self._owner), "amount": amount}})
            return amount

    # -- Reads --

    def get_contribution(self, contribution_id: int) -> Contribution:
        with self._lock:
            contribution = self._contributions.get(contribution_id)
            return contribution.model_copy() if contribution is not None else Contribution()

    def get_contributor(self, address: str) -> Contributor:
        with self._lock:
            contributor = self._contributors.get(address)
            return contributor.model_copy() if contributor is not None else Contributor()

    def get_total_contributions(self) -> int:
        with self._lock:
            return self._contribution_counter

    def is_validator(self, address: str) -> bool:
        with self._lock:
            return address in self._validators

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def minimum_stake(self) -> int:
        with self._lock:
            return self._minimum_stake

    @property
    def total_rewards_pool(self) -> int:
        with self._lock:
            return self._total_rewards_pool

    @property
    def balance(self) -> int:
        with self._lock:
            return self._custody.balance

    @property
    def events(self) -> EventFeed:
        """Read-only notification feed, in commit order."""
        return self._feed

    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            return RegistrySnapshot(
                owner=self._owner,
                minimum_stake=self._minimum_stake,
                validators=sorted(self._validators),
                contribution_counter=self._contribution_counter,
                total_rewards_pool=self._total_rewards_pool,
                balance=self._custody.balance,
                contributors=[c.model_copy() for _, c in sorted(self._contributors.items())],
                contributions=[c.model_copy() for _, c in sorted(self._contributions.items())],
                taken_at=self._clock(),
            )


__all__ = ["INITIAL_REPUTATION", "Registry"]
