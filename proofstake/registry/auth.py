"""Caller sessions for the registry.

The registry trusts whatever caller address it is handed. Hosts get
that address from a session: the caller signs a random nonce with its
sr25519 key, and a valid signature opens a session token bound to the
proven address. Every registry operation made through
``AuthenticatedRegistry`` resolves its token back to that address,
counts against the address's hourly budget and, for owner and
validator operations, is refused up front when the address does not
hold the role in the registry at call time.

Fail-closed: any verification failure = no session. All shared state
is guarded by one lock; signature checks run outside it.
"""

from __future__ import annotations

import secrets
import threading
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import bittensor as bt

from .errors import RateLimited, Unauthorized
from .models import Contribution, ContributionType, Contributor

if TYPE_CHECKING:
    from proofstake.config import RegistrySettings

    from .core import Registry

RATE_WINDOW = 3600.0


class Role(str, Enum):
    """Registry roles an address can hold."""

    OWNER = "owner"
    VALIDATOR = "validator"
    CONTRIBUTOR = "contributor"


@dataclass
class _Challenge:
    address: str
    expires_at: float


@dataclass
class _Session:
    address: str
    expires_at: float


def _short(address: str) -> str:
    return str(address)[:16] if address else "none"


class CallerAuthenticator:
    """Issues and resolves caller sessions against one registry."""

    def __init__(
        self,
        registry: Registry,
        token_ttl: int = 3600,
        challenge_ttl: int = 120,
        rate_limit_per_hour: int = 60,
        max_tokens: int = 500,
        max_pending_challenges: int = 1000,
    ):
        self.registry = registry
        self.token_ttl = token_ttl
        self.challenge_ttl = challenge_ttl
        self.rate_limit_per_hour = rate_limit_per_hour
        self.max_tokens = max_tokens
        self.max_pending_challenges = max_pending_challenges

        self._lock = threading.Lock()
        # nonce -> _Challenge, oldest first (all share one ttl, so also soonest-expiring first)
        self._challenges: OrderedDict[str, _Challenge] = OrderedDict()
        # token -> _Session, least recently used first
        self._sessions: OrderedDict[str, _Session] = OrderedDict()
        # address -> accepted request times, least recently active address first
        self._requests: OrderedDict[str, deque[float]] = OrderedDict()

    @classmethod
    def from_settings(cls, settings: RegistrySettings, registry: Registry) -> CallerAuthenticator:
        auth = settings.auth
        return cls(
            registry,
            token_ttl=auth.token_ttl,
            challenge_ttl=auth.challenge_ttl,
            rate_limit_per_hour=auth.rate_limit_per_hour,
            max_tokens=auth.max_tokens,
            max_pending_challenges=auth.max_pending_challenges,
        )

    # -- Roles --

    def roles_of(self, address: str) -> frozenset[Role]:
        """Roles ``address`` holds in the registry right now."""
        roles = set()
        if address and address == self.registry.owner:
            roles.add(Role.OWNER)
        if self.registry.is_validator(address):
            roles.add(Role.VALIDATOR)
        if self.registry.get_contributor(address).is_active:
            roles.add(Role.CONTRIBUTOR)
        return frozenset(roles)

    # -- Challenge-response --

    def issue_challenge(self, address: str) -> str:
        """Generate a nonce for ``address`` to sign.

        Once ``max_pending_challenges`` are outstanding, the oldest one
        is dropped to make room.
        """
        nonce = secrets.token_hex(32)
        now = time.time()
        with self._lock:
            while self._challenges:
                oldest = next(iter(self._challenges.values()))
                if oldest.expires_at > now and len(self._challenges) < self.max_pending_challenges:
                    break
                self._challenges.popitem(last=False)
            self._challenges[nonce] = _Challenge(address=address, expires_at=now + self.challenge_ttl)
        return nonce

    def verify_response(self, address: str, nonce: str, signature: str) -> str | None:
        """Open a session if ``signature`` signs ``nonce`` with ``address``'s key.

        Nonces are single use, even when verification fails.

        Returns:
            Session token on success, None on failure.
        """
        with self._lock:
            challenge = self._challenges.pop(nonce, None)

        reason = None
        if challenge is None:
            reason = "unknown_nonce"
        elif challenge.expires_at <= time.time():
            reason = "expired_nonce"
        elif challenge.address != address:
            reason = "address_mismatch"
        elif not self._signature_valid(address, nonce, signature):
            reason = "bad_signature"
        if reason is not None:
            bt.logging.warning({"registry_auth": {"event": "verify_failed", "address": _short(address), "reason": reason}})
            return None

        token = secrets.token_hex(32)
        with self._lock:
            while len(self._sessions) >= self.max_tokens:
                self._sessions.popitem(last=False)
            self._sessions[token] = _Session(address=address, expires_at=time.time() + self.token_ttl)

        roles = sorted(r.value for r in self.roles_of(address))
        bt.logging.info({"registry_auth": {"event": "session_opened", "address": _short(address), "roles": roles}})
        return token

    @staticmethod
    def _signature_valid(address: str, nonce: str, signature: str) -> bool:
        try:
            sig_bytes = bytes.fromhex(signature.removeprefix("0x"))
            return bool(bt.Keypair(ss58_address=address).verify(nonce.encode(), sig_bytes))
        except Exception:
            return False

    # -- Sessions --

    def resolve_caller(self, token: str) -> str | None:
        """Address a session token was opened for, or None."""
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= time.time():
                del self._sessions[token]
                return None
            self._sessions.move_to_end(token)
            return session.address

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    # -- Rate limiting --

    def check_rate_limit(self, address: str) -> bool:
        """Count a request for ``address``. Returns False once the hourly budget is spent.

        Addresses with no request inside the window are forgotten.
        """
        now = time.time()
        cutoff = now - RATE_WINDOW
        with self._lock:
            while self._requests:
                stamps = next(iter(self._requests.values()))
                if stamps and stamps[-1] > cutoff:
                    break
                self._requests.popitem(last=False)

            stamps = self._requests.pop(address, None) or deque()
            while stamps and stamps[0] <= cutoff:
                stamps.popleft()
            allowed = len(stamps) < self.rate_limit_per_hour
            if allowed:
                stamps.append(now)
            self._requests[address] = stamps
            in_window = len(stamps)

        if not allowed:
            bt.logging.warning({"registry_auth": {"event": "rate_limited", "address": _short(address), "requests_in_window": in_window}})
        return allowed

    # -- Gate --

    def authorize(self, token: str, role: Role | None = None) -> str:
        """Resolve ``token`` to a caller address for one registry operation.

        Raises:
            Unauthorized: unknown or expired session, or ``role`` not held.
            RateLimited: the address spent its hourly budget.
        """
        address = self.resolve_caller(token)
        if address is None:
            raise Unauthorized("unknown or expired session")
        if not self.check_rate_limit(address):
            raise RateLimited(f"more than {self.rate_limit_per_hour} requests in the last hour")
        if role is not None and role not in self.roles_of(address):
            bt.logging.warning({"registry_auth": {"event": "role_denied", "address": _short(address), "role": role.value}})
            raise Unauthorized(f"caller does not hold the {role.value} role")
        return address


class AuthenticatedRegistry:
    """Registry operations addressed by session token instead of raw address.

    The registry still enforces every rule itself; the role checks here
    only refuse owner and validator calls before they reach it.
    """

    def __init__(self, registry: Registry, authenticator: CallerAuthenticator):
        if authenticator.registry is not registry:
            raise ValueError("authenticator is bound to a different registry")
        self.registry = registry
        self.auth = authenticator

    def register_contributor(self, token: str, stake_amount: int) -> Contributor:
        return self.registry.register_contributor(self.auth.authorize(token), stake_amount)

    def submit_contribution(self, token: str, contribution_type: ContributionType | str, data_hash: str) -> int:
        return self.registry.submit_contribution(self.auth.authorize(token), contribution_type, data_hash)

    def distribute_rewards(self, token: str, contribution_id: int, quality_score: int) -> Contribution:
        caller = self.auth.authorize(token, Role.VALIDATOR)
        return self.registry.distribute_rewards(caller, contribution_id, quality_score)

    def deposit(self, token: str, amount: int) -> int:
        return self.registry.deposit(self.auth.authorize(token), amount)

    def add_validator(self, token: str, address: str) -> None:
        self.registry.add_validator(self.auth.authorize(token, Role.OWNER), address)

    def remove_validator(self, token: str, address: str) -> None:
        self.registry.remove_validator(self.auth.authorize(token, Role.OWNER), address)

    def update_minimum_stake(self, token: str, value: int) -> None:
        self.registry.update_minimum_stake(self.auth.authorize(token, Role.OWNER), value)

    def deactivate_contributor(self, token: str, address: str) -> None:
        self.registry.deactivate_contributor(self.auth.authorize(token, Role.OWNER), address)

    def withdraw(self, token: str) -> int:
        return self.registry.withdraw(self.auth.authorize(token, Role.OWNER))


__all__ = ["RATE_WINDOW", "AuthenticatedRegistry", "CallerAuthenticator", "Role"]
