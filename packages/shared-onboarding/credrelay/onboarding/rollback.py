"""Compensating rollback for partially onboarded credentials."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from credrelay.onboarding.exceptions import (
    RollbackDeleteError,
    RollbackDisableError,
    RollbackError,
)

if TYPE_CHECKING:
    from credrelay.registry import RegistryClient

logger = logging.getLogger(__name__)


class RollbackOutcome(str, Enum):
    """Outcome of the compensating rollback for a failed item."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # nothing was created, nothing to undo


@dataclass
class RollbackResult:
    """Result of a rollback attempt."""

    outcome: RollbackOutcome
    credential_id: int | None = None
    error: RollbackError | None = None

    @property
    def error_message(self) -> str | None:
        """Return the triggering error message, if any."""
        return str(self.error) if self.error else None

    @classmethod
    def skipped(cls) -> RollbackResult:
        """Result for an item that never obtained a remote identifier."""
        return cls(outcome=RollbackOutcome.SKIPPED)


class RollbackCoordinator:
    """Disables and then deletes a credential whose verification failed.

    The delete step runs only if the disable step succeeded. Each step is
    attempted once; failures are returned, never raised, so the caller can
    surface the credential for manual cleanup.
    """

    def __init__(self, registry: RegistryClient):
        self.registry = registry

    def rollback(self, credential_id: int) -> RollbackResult:
        """Undo a partially created credential.

        Args:
            credential_id: The registry id returned by the create call.

        Returns:
            RollbackResult with outcome SUCCESS or FAILED.
        """
        logger.warning(f"Rolling back credential #{credential_id}")

        try:
            self.registry.set_disabled(credential_id, True)
        except Exception as e:
            error = RollbackDisableError(str(e), credential_id)
            error.__cause__ = e
            logger.error(
                f"Rollback of credential #{credential_id} failed: {error}. "
                "Manual cleanup required."
            )
            return RollbackResult(RollbackOutcome.FAILED, credential_id, error)

        try:
            self.registry.delete_credential(credential_id)
        except Exception as e:
            error = RollbackDeleteError(str(e), credential_id)
            error.__cause__ = e
            logger.error(
                f"Rollback of credential #{credential_id} failed: {error}. "
                "Credential is disabled but still present; manual cleanup required."
            )
            return RollbackResult(RollbackOutcome.FAILED, credential_id, error)

        logger.info(f"Rollback successful: deleted credential #{credential_id}")
        return RollbackResult(RollbackOutcome.SUCCESS, credential_id)
