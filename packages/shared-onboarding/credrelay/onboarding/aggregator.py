"""Running tallies and progress reporting for onboarding batches."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from credrelay.onboarding.models import ItemStatus, OnboardingItem
from credrelay.onboarding.rollback import RollbackOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchProgress:
    """Progress cursor: completed items out of total."""

    current: int
    total: int

    @property
    def fraction(self) -> float:
        """Completed share in [0, 1]; 0 for an empty batch."""
        return self.current / self.total if self.total else 0.0

    @property
    def is_complete(self) -> bool:
        return self.current >= self.total


@dataclass
class BatchCounters:
    """Aggregate counts for every terminal status and rollback outcome."""

    verified: int = 0
    duplicate: int = 0
    failed: int = 0
    skipped: int = 0
    rollback_success: int = 0
    rollback_failed: int = 0
    rollback_skipped: int = 0


@dataclass
class BatchSummary:
    """Final classification of a batch run."""

    total: int
    completed: int
    counters: BatchCounters
    cancelled: bool = False
    rollback_failed_ids: list[int] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        """Return True if every item in the batch was verified."""
        return (
            not self.cancelled
            and self.total > 0
            and self.counters.verified == self.total
        )

    @property
    def needs_manual_cleanup(self) -> bool:
        """Return True if any rollback left a credential behind."""
        return bool(self.rollback_failed_ids)

    def message(self) -> str:
        """One-line human summary of the run."""
        c = self.counters
        if self.is_success:
            return f"Imported and verified {c.verified} credentials"

        text = f"Verification complete: verified {c.verified}, duplicate {c.duplicate}"
        if c.skipped:
            text += f", skipped {c.skipped}"
        if c.failed:
            text += (
                f", failed {c.failed} (rollback succeeded {c.rollback_success}, "
                f"rollback failed {c.rollback_failed}, rollback skipped {c.rollback_skipped})"
            )
        if self.cancelled:
            text += f"; cancelled after {self.completed}/{self.total}"
        return text

    def to_dict(self) -> dict:
        """Serialize for tool responses."""
        c = self.counters
        return {
            "success": self.is_success,
            "total": self.total,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "verified": c.verified,
            "duplicate": c.duplicate,
            "failed": c.failed,
            "skipped": c.skipped,
            "rollback_success": c.rollback_success,
            "rollback_failed": c.rollback_failed,
            "rollback_skipped": c.rollback_skipped,
            "rollback_failed_ids": list(self.rollback_failed_ids),
            "message": self.message(),
        }


class ResultAggregator:
    """Accumulates terminal item outcomes into running tallies.

    ``record()`` is called once per item when it reaches a terminal status
    and returns the updated progress cursor.
    """

    def __init__(self, total: int):
        self.total = total
        self.completed = 0
        self.counters = BatchCounters()
        self.rollback_failed_ids: list[int] = []

    @property
    def progress(self) -> BatchProgress:
        return BatchProgress(current=self.completed, total=self.total)

    def record(self, item: OnboardingItem) -> BatchProgress:
        """Count a finished item.

        Raises:
            ValueError: If the item has not reached a terminal status.
        """
        if not item.is_terminal:
            raise ValueError(f"Item {item.index} is still {item.status.value}")

        c = self.counters
        if item.status == ItemStatus.VERIFIED:
            c.verified += 1
        elif item.status == ItemStatus.DUPLICATE:
            c.duplicate += 1
        elif item.status == ItemStatus.SKIPPED:
            c.skipped += 1
        else:
            c.failed += 1

        if item.rollback == RollbackOutcome.SUCCESS:
            c.rollback_success += 1
        elif item.rollback == RollbackOutcome.FAILED:
            c.rollback_failed += 1
            if item.credential_id is not None:
                self.rollback_failed_ids.append(item.credential_id)
        elif item.rollback == RollbackOutcome.SKIPPED:
            c.rollback_skipped += 1

        self.completed += 1
        return self.progress

    def summary(self, cancelled: bool = False) -> BatchSummary:
        """Build the end-of-batch summary and log it."""
        summary = BatchSummary(
            total=self.total,
            completed=self.completed,
            counters=BatchCounters(**vars(self.counters)),
            cancelled=cancelled,
            rollback_failed_ids=list(self.rollback_failed_ids),
        )
        logger.info(summary.message())
        if summary.needs_manual_cleanup:
            ids = ", ".join(f"#{i}" for i in summary.rollback_failed_ids)
            logger.warning(
                f"{len(summary.rollback_failed_ids)} credentials could not be rolled back "
                f"and must be disabled or deleted manually: {ids}"
            )
        return summary
