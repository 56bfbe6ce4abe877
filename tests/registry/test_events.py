"""Tests for notification emission and the event log."""

from datetime import datetime, timezone

import pytest

from proofstake.registry.errors import AlreadyValidated, EmptyDataReference
from proofstake.registry.events import EventLog
from proofstake.registry.models import (
    ContributionSubmitted,
    ContributionType,
    ContributionValidated,
    ContributorRegistered,
    RewardDistributed,
)

from _constants import ALICE, MIN_STAKE, VALIDATOR


class TestRegistryNotifications:

    def test_full_lifecycle_order(self, registry):
        registry.register_contributor(ALICE, MIN_STAKE)
        cid = registry.submit_contribution(ALICE, ContributionType.COMPUTE_POWER, "h")
        registry.distribute_rewards(VALIDATOR, cid, 80)

        events = registry.events.events()
        assert [e.name for e in events] == [
            "ContributorRegistered",
            "ContributionSubmitted",
            "ContributionValidated",
            "RewardDistributed",
        ]
        assert [e.sequence for e in events] == [1, 2, 3, 4]

        registered, submitted, validated, rewarded = events
        assert isinstance(registered, ContributorRegistered)
        assert (registered.address, registered.amount) == (ALICE, MIN_STAKE)
        assert isinstance(submitted, ContributionSubmitted)
        assert submitted.contribution_id == cid
        assert submitted.contributor == ALICE
        assert submitted.contribution_type == ContributionType.COMPUTE_POWER
        assert isinstance(validated, ContributionValidated)
        assert (validated.contribution_id, validated.quality_score) == (cid, 80)
        assert isinstance(rewarded, RewardDistributed)
        assert (rewarded.address, rewarded.amount) == (ALICE, 8 * 10**17)

    def test_failures_emit_nothing(self, registry):
        registry.register_contributor(ALICE, MIN_STAKE)
        with pytest.raises(EmptyDataReference):
            registry.submit_contribution(ALICE, ContributionType.DATASET, "")
        cid = registry.submit_contribution(ALICE, ContributionType.DATASET, "h")
        registry.distribute_rewards(VALIDATOR, cid, 10)
        with pytest.raises(AlreadyValidated):
            registry.distribute_rewards(VALIDATOR, cid, 10)
        assert len(registry.events) == 4

    def test_admin_and_funding_emit_nothing(self, registry):
        registry.deposit("sponsor", 10)
        registry.add_validator(registry.owner, "v2")
        assert len(registry.events) == 0

    def test_subscriber_receives_committed_events(self, registry):
        seen = []
        registry.events.subscribe(seen.append)
        registry.register_contributor(ALICE, MIN_STAKE)
        assert len(seen) == 1
        assert seen[0].sequence == 1
        assert seen[0].committed_at is not None

    def test_failing_subscriber_does_not_undo_commit(self, registry):
        def boom(event):
            raise RuntimeError("indexer down")

        registry.events.subscribe(boom)
        registry.register_contributor(ALICE, MIN_STAKE)
        assert registry.get_contributor(ALICE).is_active
        assert len(registry.events) == 1


class TestEventLog:

    def _now(self):
        return datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_sequence_continues_across_batches(self):
        log = EventLog()
        log.publish([ContributorRegistered(address="a", amount=1)], self._now())
        log.publish(
            [
                ContributionValidated(contribution_id=1, quality_score=5),
                RewardDistributed(address="a", amount=2),
            ],
            self._now(),
        )
        assert [e.sequence for e in log.events()] == [1, 2, 3]
        assert log.last_sequence == 3

    def test_filter_since_and_name(self):
        log = EventLog()
        log.publish([ContributorRegistered(address=f"a{i}", amount=i) for i in range(3)], self._now())
        assert [e.address for e in log.events(since=1)] == ["a1", "a2"]
        assert log.events(name="RewardDistributed") == []

    def test_unsubscribe(self):
        log = EventLog()
        seen = []
        unsubscribe = log.subscribe(seen.append)
        log.publish([ContributorRegistered(address="a", amount=1)], self._now())
        unsubscribe()
        log.publish([ContributorRegistered(address="b", amount=1)], self._now())
        assert len(seen) == 1

    def test_published_events_are_copies(self):
        log = EventLog()
        original = ContributorRegistered(address="a", amount=1)
        log.publish([original], self._now())
        assert original.sequence == 0
        assert log.events()[0].sequence == 1


class TestFeedIsReadOnly:

    def test_feed_cannot_publish(self, registry):
        assert not hasattr(registry.events, "publish")
        with pytest.raises(AttributeError):
            registry.events.publish(
                [ContributorRegistered(address="mallory", amount=10**30)],
                datetime.now(timezone.utc),
            )
        assert len(registry.events) == 0

    def test_feed_cannot_be_extended_with_attributes(self, registry):
        with pytest.raises(AttributeError):
            registry.events.publish = lambda *a, **k: None

    def test_returned_events_do_not_alias_log(self, registry):
        registry.register_contributor(ALICE, MIN_STAKE)
        registry.events.events()[0].amount = 10**30
        assert registry.events.events()[0].amount == MIN_STAKE

    def test_subscriber_copy_does_not_alias_log(self, registry):
        def tamper(event):
            event.address = "mallory"

        registry.events.subscribe(tamper)
        registry.register_contributor(ALICE, MIN_STAKE)
        assert registry.events.events()[0].address == ALICE


class TestCommitTimestamps:

    def test_submission_time_matches_commit_time(self, registry):
        registry.register_contributor(ALICE, MIN_STAKE)
        cid = registry.submit_contribution(ALICE, ContributionType.DATASET, "h")
        submitted = registry.events.events(name="ContributionSubmitted")[0]
        assert submitted.committed_at == registry.get_contribution(cid).timestamp

    def test_scoring_batch_shares_one_commit_time(self, registry):
        registry.register_contributor(ALICE, MIN_STAKE)
        cid = registry.submit_contribution(ALICE, ContributionType.DATASET, "h")
        registry.distribute_rewards(VALIDATOR, cid, 50)
        validated, rewarded = registry.events.events(since=2)
        assert validated.committed_at == rewarded.committed_at
