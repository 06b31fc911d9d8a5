"""Tests for item state and batch aggregation."""

import pytest
from credrelay.onboarding import (
    BatchProgress,
    InvalidTransitionError,
    ItemStatus,
    OnboardingItem,
    ResultAggregator,
    RollbackOutcome,
)


def _item(index, status, rollback=None, credential_id=None):
    return OnboardingItem(
        index=index, status=status, rollback=rollback, credential_id=credential_id
    )


class TestOnboardingItem:
    """Test item status transitions."""

    def test_happy_path_transitions(self):
        item = OnboardingItem(index=1)

        item.advance(ItemStatus.CHECKING)
        item.advance(ItemStatus.VERIFYING)
        item.advance(ItemStatus.VERIFIED)

        assert item.status == ItemStatus.VERIFIED
        assert item.is_terminal is True

    def test_pending_can_be_skipped(self):
        item = OnboardingItem(index=1)

        item.advance(ItemStatus.SKIPPED)

        assert item.is_terminal is True

    @pytest.mark.parametrize(
        "start,target",
        [
            (ItemStatus.PENDING, ItemStatus.VERIFIED),
            (ItemStatus.PENDING, ItemStatus.VERIFYING),
            (ItemStatus.CHECKING, ItemStatus.SKIPPED),
            (ItemStatus.VERIFYING, ItemStatus.DUPLICATE),
            (ItemStatus.VERIFIED, ItemStatus.FAILED),
            (ItemStatus.FAILED, ItemStatus.CHECKING),
        ],
    )
    def test_illegal_transitions_rejected(self, start, target):
        """Test transitions outside the state machine raise."""
        item = OnboardingItem(index=4, status=start)

        with pytest.raises(InvalidTransitionError, match="Item 4 cannot move"):
            item.advance(target)
        assert item.status == start

    def test_label_prefers_identity(self):
        assert OnboardingItem(index=2).label == "credential #2"
        assert OnboardingItem(index=2, identity="a@example.com").label == "a@example.com"


class TestBatchProgress:
    """Test the progress cursor."""

    def test_fraction(self):
        assert BatchProgress(current=1, total=4).fraction == 0.25
        assert BatchProgress(current=0, total=0).fraction == 0.0

    def test_is_complete(self):
        assert BatchProgress(current=3, total=3).is_complete is True
        assert BatchProgress(current=2, total=3).is_complete is False


class TestResultAggregator:
    """Test running tallies and summaries."""

    def test_counts_each_status(self):
        """Test every terminal status and rollback outcome is counted."""
        aggregator = ResultAggregator(total=6)
        items = [
            _item(1, ItemStatus.VERIFIED),
            _item(2, ItemStatus.DUPLICATE),
            _item(3, ItemStatus.SKIPPED),
            _item(4, ItemStatus.FAILED, RollbackOutcome.SUCCESS, 11),
            _item(5, ItemStatus.FAILED, RollbackOutcome.FAILED, 12),
            _item(6, ItemStatus.FAILED, RollbackOutcome.SKIPPED),
        ]

        progress = [aggregator.record(item) for item in items]

        assert [p.current for p in progress] == [1, 2, 3, 4, 5, 6]
        c = aggregator.counters
        assert (c.verified, c.duplicate, c.skipped, c.failed) == (1, 1, 1, 3)
        assert (c.rollback_success, c.rollback_failed, c.rollback_skipped) == (1, 1, 1)
        assert aggregator.rollback_failed_ids == [12]

    def test_counts_sum_to_completed(self):
        """Test status counts always add up to completed items."""
        aggregator = ResultAggregator(total=3)
        for i, status in enumerate([ItemStatus.VERIFIED, ItemStatus.FAILED], start=1):
            aggregator.record(_item(i, status, RollbackOutcome.SKIPPED))

        c = aggregator.counters
        assert c.verified + c.duplicate + c.failed + c.skipped == aggregator.completed == 2

    def test_rejects_non_terminal_item(self):
        aggregator = ResultAggregator(total=1)

        with pytest.raises(ValueError, match="still checking"):
            aggregator.record(_item(1, ItemStatus.CHECKING))
        assert aggregator.completed == 0

    def test_all_verified_summary(self):
        aggregator = ResultAggregator(total=2)
        aggregator.record(_item(1, ItemStatus.VERIFIED))
        aggregator.record(_item(2, ItemStatus.VERIFIED))

        summary = aggregator.summary()

        assert summary.is_success is True
        assert summary.message() == "Imported and verified 2 credentials"

    def test_mixed_summary_message(self):
        """Test the partial-outcome message lists every non-zero group."""
        aggregator = ResultAggregator(total=4)
        aggregator.record(_item(1, ItemStatus.VERIFIED))
        aggregator.record(_item(2, ItemStatus.DUPLICATE))
        aggregator.record(_item(3, ItemStatus.SKIPPED))
        aggregator.record(_item(4, ItemStatus.FAILED, RollbackOutcome.SUCCESS, 8))

        summary = aggregator.summary()

        assert summary.is_success is False
        assert summary.message() == (
            "Verification complete: verified 1, duplicate 1, skipped 1, "
            "failed 1 (rollback succeeded 1, rollback failed 0, rollback skipped 0)"
        )

    def test_cancelled_summary(self):
        aggregator = ResultAggregator(total=3)
        aggregator.record(_item(1, ItemStatus.VERIFIED))

        summary = aggregator.summary(cancelled=True)

        assert summary.is_success is False
        assert summary.message().endswith("; cancelled after 1/3")

    def test_summary_is_a_snapshot(self):
        """Test later records do not change an earlier summary."""
        aggregator = ResultAggregator(total=2)
        aggregator.record(_item(1, ItemStatus.VERIFIED))
        summary = aggregator.summary()

        aggregator.record(_item(2, ItemStatus.FAILED, RollbackOutcome.FAILED, 5))

        assert summary.counters.failed == 0
        assert summary.rollback_failed_ids == []

    def test_manual_cleanup_warning(self, caplog):
        """Test failed rollbacks are listed in a warning."""
        aggregator = ResultAggregator(total=1)
        aggregator.record(_item(1, ItemStatus.FAILED, RollbackOutcome.FAILED, 42))

        with caplog.at_level("WARNING"):
            summary = aggregator.summary()

        assert summary.needs_manual_cleanup is True
        assert "#42" in caplog.text

    def test_to_dict(self):
        aggregator = ResultAggregator(total=1)
        aggregator.record(_item(1, ItemStatus.FAILED, RollbackOutcome.FAILED, 42))

        data = aggregator.summary().to_dict()

        assert data["success"] is False
        assert data["failed"] == 1
        assert data["rollback_failed_ids"] == [42]
        assert data["message"].startswith("Verification complete")
