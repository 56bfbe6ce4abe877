"""Registry configuration loaded from environment variables.

Variables use the ``PROOFSTAKE_`` prefix and ``__`` for nesting, e.g.
``PROOFSTAKE_OWNER``, ``PROOFSTAKE_MINIMUM_STAKE``,
``PROOFSTAKE_VALIDATORS='["5F...", "5G..."]'``, ``PROOFSTAKE_AUTH__TOKEN_TTL``.
A ``.env`` file in the working directory is read as well; real
environment variables take priority over it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from proofstake.registry.models import REWARD_UNIT

DEFAULT_MINIMUM_STAKE = REWARD_UNIT // 100  # 0.01 reward units


class AuthSettings(BaseModel):
    """Caller authentication limits."""

    token_ttl: int = Field(3600, gt=0, description="Session token lifetime in seconds")
    challenge_ttl: int = Field(120, gt=0, description="Seconds a nonce stays answerable")
    rate_limit_per_hour: int = Field(60, gt=0)
    max_tokens: int = Field(500, gt=0, description="Open sessions kept before the least recently used is dropped")
    max_pending_challenges: int = Field(1000, gt=0, description="Unanswered nonces kept before the oldest is dropped")


class RegistrySettings(BaseSettings):
    """Registry settings."""

    owner: str = Field(..., min_length=1, description="Address allowed to run admin operations")
    minimum_stake: int = Field(DEFAULT_MINIMUM_STAKE, ge=0, description="Smallest accepted stake, in base units")
    validators: list[str] = Field(default_factory=list, description="Initial validator addresses")
    auth: AuthSettings = Field(default_factory=AuthSettings)

    model_config = SettingsConfigDict(
        env_prefix="PROOFSTAKE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["DEFAULT_MINIMUM_STAKE", "AuthSettings", "RegistrySettings"]
