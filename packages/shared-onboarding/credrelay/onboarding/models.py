"""Per-item onboarding state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from credrelay.onboarding.exceptions import InvalidTransitionError
from credrelay.onboarding.rollback import RollbackOutcome, RollbackResult


class ItemStatus(str, Enum):
    """Status of a single credential in a batch."""

    PENDING = "pending"
    CHECKING = "checking"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Return True if no further transition is possible."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {ItemStatus.VERIFIED, ItemStatus.DUPLICATE, ItemStatus.FAILED, ItemStatus.SKIPPED}
)

ALLOWED_TRANSITIONS: dict[ItemStatus, frozenset[ItemStatus]] = {
    ItemStatus.PENDING: frozenset({ItemStatus.CHECKING, ItemStatus.SKIPPED}),
    ItemStatus.CHECKING: frozenset(
        {ItemStatus.VERIFYING, ItemStatus.DUPLICATE, ItemStatus.FAILED}
    ),
    ItemStatus.VERIFYING: frozenset({ItemStatus.VERIFIED, ItemStatus.FAILED}),
}


@dataclass
class OnboardingItem:
    """Progress and outcome of one credential in a batch."""

    index: int  # 1-based position in the batch
    status: ItemStatus = ItemStatus.PENDING
    error: str | None = None
    rollback: RollbackOutcome | None = None
    rollback_error: str | None = None
    credential_id: int | None = None
    identity: str | None = None
    usage: str | None = None
    token_hash: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Return True once the item reached its final status."""
        return self.status.is_terminal

    @property
    def label(self) -> str:
        """Human readable name for logs and summaries."""
        return self.identity or f"credential #{self.index}"

    def advance(self, status: ItemStatus) -> None:
        """Move to the next status.

        Raises:
            InvalidTransitionError: If the transition is not allowed.
        """
        if status not in ALLOWED_TRANSITIONS.get(self.status, frozenset()):
            raise InvalidTransitionError(
                f"Item {self.index} cannot move from {self.status.value} to {status.value}"
            )
        self.status = status

    def record_rollback(self, result: RollbackResult) -> None:
        """Store the outcome of a rollback attempt."""
        self.rollback = result.outcome
        self.rollback_error = result.error_message
