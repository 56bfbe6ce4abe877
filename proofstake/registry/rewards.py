"""Deterministic reward and reputation arithmetic.

Integer-only: amounts are in the smallest reward unit and every
division truncates, so the same inputs give the same outputs on any host.
"""

from __future__ import annotations

from .models import REWARD_UNIT, ContributionType

MIN_QUALITY_SCORE = 1
MAX_QUALITY_SCORE = 100

BASE_REWARDS: dict[ContributionType, int] = {
    ContributionType.COMPUTE_POWER: REWARD_UNIT,           # 1.0
    ContributionType.DATASET: REWARD_UNIT // 2,            # 0.5
    ContributionType.VALIDATION: REWARD_UNIT * 2 // 10,    # 0.2
}

_missing = set(ContributionType) - set(BASE_REWARDS)
if _missing:
    raise ImportError(f"BASE_REWARDS has no entry for {sorted(m.value for m in _missing)}")


def base_reward(contribution_type: ContributionType) -> int:
    return BASE_REWARDS[contribution_type]


def compute_reward(contribution_type: ContributionType, quality_score: int) -> int:
    """Reward for a scored contribution: floor(base * score / 100)."""
    return base_reward(contribution_type) * quality_score // MAX_QUALITY_SCORE


def next_reputation(current: int, quality_score: int) -> int:
    """Running average of the previous reputation and the new score."""
    return (current + quality_score) // 2


def is_valid_quality_score(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_QUALITY_SCORE <= value <= MAX_QUALITY_SCORE


__all__ = [
    "BASE_REWARDS",
    "MAX_QUALITY_SCORE",
    "MIN_QUALITY_SCORE",
    "base_reward",
    "compute_reward",
    "is_valid_quality_score",
    "next_reputation",
]
