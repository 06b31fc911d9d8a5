"""Configuration for the credential registry admin API client."""

from __future__ import annotations

import os

from pydantic import BaseModel

DEFAULT_BASE_URL = "http://127.0.0.1:8990/api/admin"


class RegistryConfig(BaseModel):
    """Connection settings for the registry admin API.

    Either ``session_token`` (an existing admin bearer token) or a
    ``username``/``password`` pair used to log in must be supplied for
    authenticated calls.
    """

    base_url: str = DEFAULT_BASE_URL
    session_token: str | None = None
    username: str | None = None
    password: str | None = None
    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0

    @property
    def can_login(self) -> bool:
        """Return True if username and password are both configured."""
        return bool(self.username and self.password)

    @classmethod
    def from_env(cls) -> RegistryConfig:
        """Load configuration from environment variables."""
        return cls(
            base_url=os.getenv("CREDRELAY_ADMIN_URL", DEFAULT_BASE_URL),
            session_token=os.getenv("CREDRELAY_ADMIN_TOKEN") or None,
            username=os.getenv("CREDRELAY_ADMIN_USERNAME") or None,
            password=os.getenv("CREDRELAY_ADMIN_PASSWORD") or None,
            timeout_seconds=float(os.getenv("CREDRELAY_HTTP_TIMEOUT", "30")),
        )
