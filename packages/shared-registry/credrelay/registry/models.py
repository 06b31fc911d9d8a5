"""Data models for the credential registry admin API.

The admin API speaks camelCase JSON; these dataclasses hold the decoded
snake_case view and convert at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AuthMethod(str, Enum):
    """How a credential refreshes its access token."""

    SOCIAL = "social"  # refresh token only
    IDC = "idc"  # refresh token plus client id/secret


@dataclass
class CredentialRecord:
    """A credential already present in the registry."""

    id: int
    priority: int = 0
    disabled: bool = False
    auth_method: str | None = None
    email: str | None = None
    refresh_token_hash: str | None = None
    failure_count: int = 0
    success_count: int = 0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CredentialRecord:
        """Build a record from an admin API list entry."""
        return cls(
            id=int(payload["id"]),
            priority=int(payload.get("priority") or 0),
            disabled=bool(payload.get("disabled", False)),
            auth_method=payload.get("authMethod"),
            email=payload.get("email") or None,
            refresh_token_hash=payload.get("refreshTokenHash") or None,
            failure_count=int(payload.get("failureCount") or 0),
            success_count=int(payload.get("successCount") or 0),
        )


@dataclass
class CreateCredentialRequest:
    """Request body for adding a credential to the registry."""

    refresh_token: str = field(repr=False)
    auth_method: AuthMethod = AuthMethod.SOCIAL
    client_id: str | None = None
    client_secret: str | None = field(default=None, repr=False)
    priority: int = 0
    auth_region: str | None = None
    api_region: str | None = None
    machine_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Encode as the admin API's camelCase body, omitting unset fields."""
        payload: dict[str, Any] = {
            "refreshToken": self.refresh_token,
            "authMethod": self.auth_method.value,
            "priority": self.priority,
        }
        optional = {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "authRegion": self.auth_region,
            "apiRegion": self.api_region,
            "machineId": self.machine_id,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass
class CreatedCredential:
    """Response of a successful create call."""

    credential_id: int
    email: str | None = None
    message: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CreatedCredential:
        """Build from the admin API create response."""
        return cls(
            credential_id=int(payload["credentialId"]),
            email=payload.get("email") or None,
            message=payload.get("message", ""),
        )


@dataclass
class BalanceSnapshot:
    """Usage/balance snapshot used to verify a credential is live."""

    credential_id: int
    current_usage: float
    usage_limit: float
    remaining: float | None = None
    usage_percentage: float | None = None
    subscription_title: str | None = None
    next_reset_at: float | None = None

    @property
    def usage_display(self) -> str:
        """Return usage as ``current/limit`` with integral values unpadded."""
        return f"{_format_number(self.current_usage)}/{_format_number(self.usage_limit)}"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BalanceSnapshot:
        """Build from the admin API balance response."""
        return cls(
            credential_id=int(payload["id"]),
            current_usage=float(payload["currentUsage"]),
            usage_limit=float(payload["usageLimit"]),
            remaining=payload.get("remaining"),
            usage_percentage=payload.get("usagePercentage"),
            subscription_title=payload.get("subscriptionTitle"),
            next_reset_at=payload.get("nextResetAt"),
        )


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
