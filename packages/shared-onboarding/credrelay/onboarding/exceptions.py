"""Custom exceptions for credential onboarding."""

from __future__ import annotations


class OnboardingError(Exception):
    """Base exception for onboarding errors."""

    pass


class ParseError(OnboardingError):
    """Raised when batch input is malformed or matches no accepted shape.

    Aborts the whole batch before any registry call is made.
    """

    pass


class ValidationError(OnboardingError):
    """Raised when a single input fails local validation."""

    pass


class InvalidTransitionError(OnboardingError):
    """Raised when an item is moved to a status it cannot reach."""

    pass


class RemoteCreateError(OnboardingError):
    """Raised when the registry rejects or fails a create call."""

    pass


class RemoteProbeError(OnboardingError):
    """Raised when the verification probe of a created credential fails."""

    def __init__(self, message: str, credential_id: int):
        super().__init__(message)
        self.credential_id = credential_id


class RollbackError(OnboardingError):
    """Base exception for compensating rollback steps."""

    step = "rollback"

    def __init__(self, message: str, credential_id: int):
        super().__init__(f"{self.step} failed: {message}")
        self.credential_id = credential_id


class RollbackDisableError(RollbackError):
    """Raised when disabling a partially created credential fails."""

    step = "disable"


class RollbackDeleteError(RollbackError):
    """Raised when deleting a disabled credential fails."""

    step = "delete"
