"""Tests for reward and reputation arithmetic."""

import pytest

from proofstake.registry.models import REWARD_UNIT, ContributionType
from proofstake.registry.rewards import (
    BASE_REWARDS,
    base_reward,
    compute_reward,
    is_valid_quality_score,
    next_reputation,
)


class TestBaseRewards:

    def test_table_covers_every_type(self):
        assert set(BASE_REWARDS) == set(ContributionType)

    def test_base_amounts(self):
        assert base_reward(ContributionType.COMPUTE_POWER) == REWARD_UNIT
        assert base_reward(ContributionType.DATASET) == REWARD_UNIT // 2
        assert base_reward(ContributionType.VALIDATION) == 2 * 10**17


class TestComputeReward:

    def test_compute_power_at_80(self):
        assert compute_reward(ContributionType.COMPUTE_POWER, 80) == 8 * 10**17

    def test_dataset_at_50(self):
        assert compute_reward(ContributionType.DATASET, 50) == 25 * 10**16

    def test_validation_at_100(self):
        assert compute_reward(ContributionType.VALIDATION, 100) == 2 * 10**17

    def test_lowest_score(self):
        assert compute_reward(ContributionType.VALIDATION, 1) == 2 * 10**15

    def test_integer_and_monotonic_in_score(self):
        for ctype in ContributionType:
            rewards = [compute_reward(ctype, q) for q in range(1, 101)]
            assert all(isinstance(r, int) for r in rewards)
            assert rewards == sorted(rewards)
            assert rewards[-1] == base_reward(ctype)


class TestReputation:

    def test_running_average_sequence(self):
        rep = next_reputation(100, 60)
        assert rep == 80
        rep = next_reputation(rep, 90)
        assert rep == 85

    def test_odd_sum_truncates(self):
        assert next_reputation(85, 90) == 87

    @pytest.mark.parametrize("current,score", [(0, 1), (100, 100), (1, 1), (100, 1)])
    def test_stays_in_range(self, current, score):
        assert 0 <= next_reputation(current, score) <= 100


class TestQualityScoreBounds:

    @pytest.mark.parametrize("value", [1, 50, 100])
    def test_valid(self, value):
        assert is_valid_quality_score(value)

    @pytest.mark.parametrize("value", [0, 101, -5, 50.0, "50", True, None])
    def test_invalid(self, value):
        assert not is_valid_quality_score(value)
