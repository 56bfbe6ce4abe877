"""Typed errors raised by registry operations.

Every error is raised before any state is touched, so a failed
operation leaves the registry exactly as it was.

    RegistryError
    ├── AuthorizationError   caller lacks the owner/validator/contributor role
    ├── ValidationError      malformed input
    └── StateConflictError   operation would repeat a one-way transition
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class. ``code`` is stable and safe to expose to callers."""

    def __init__(self, message: str = ""):
        self.code = type(self).__name__
        super().__init__(message or self.code)


class AuthorizationError(RegistryError):
    pass


class ValidationError(RegistryError):
    pass


class StateConflictError(RegistryError):
    pass


# -- Authorization --

class Unauthorized(AuthorizationError):
    pass


class NotActiveContributor(AuthorizationError):
    pass


class RateLimited(AuthorizationError):
    pass


# -- Validation --

class InsufficientStake(ValidationError):
    pass


class EmptyDataReference(ValidationError):
    pass


class InvalidContributionId(ValidationError):
    pass


class InvalidQualityScore(ValidationError):
    pass


class InvalidContributionType(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


# -- State conflicts --

class AlreadyRegistered(StateConflictError):
    pass


class AlreadyValidated(StateConflictError):
    pass


__all__ = [
    "AlreadyRegistered",
    "AlreadyValidated",
    "AuthorizationError",
    "EmptyDataReference",
    "InsufficientStake",
    "InvalidAmount",
    "InvalidContributionId",
    "InvalidContributionType",
    "InvalidQualityScore",
    "NotActiveContributor",
    "RateLimited",
    "RegistryError",
    "StateConflictError",
    "Unauthorized",
    "ValidationError",
]
