"""Custom exceptions for the registry client."""

from __future__ import annotations


class RegistryError(Exception):
    """Base exception for registry errors.

    Attributes:
        status_code: HTTP status returned by the registry, if any.
        error_type: The ``error.type`` field of the admin error body, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class AuthenticationError(RegistryError):
    """Raised when the admin session is missing, expired or rejected."""

    pass


class CredentialNotFoundError(RegistryError):
    """Raised when a credential id does not exist in the registry."""

    pass


class RemoteRejectedError(RegistryError):
    """Raised when the registry refuses a request (validation or server error)."""

    pass


class RegistryConnectionError(RegistryError):
    """Raised when the registry cannot be reached."""

    pass
