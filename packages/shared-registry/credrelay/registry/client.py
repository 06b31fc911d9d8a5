"""HTTP client for the credential registry admin API.

Provides:
- Lazy ``httpx.Client`` construction with bearer session auth
- Login with username/password and a single re-login on 401
- Typed wrappers for the credential operations used by onboarding
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from credrelay.registry.config import RegistryConfig
from credrelay.registry.exceptions import (
    AuthenticationError,
    CredentialNotFoundError,
    RegistryConnectionError,
    RemoteRejectedError,
)
from credrelay.registry.models import (
    BalanceSnapshot,
    CreateCredentialRequest,
    CreatedCredential,
    CredentialRecord,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> tuple[str, str | None]:
    """Extract ``(message, error_type)`` from an admin error response."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return (text or f"HTTP {response.status_code}"), None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"]), error.get("type")
        if body.get("message"):
            return str(body["message"]), None
    return f"HTTP {response.status_code}", None


def _raise_for_response(response: httpx.Response) -> None:
    """Translate a non-2xx admin response into a RegistryError subclass."""
    if response.is_success:
        return

    message, error_type = _error_message(response)
    status = response.status_code
    if status == 401:
        raise AuthenticationError(message, status_code=status, error_type=error_type)
    if status == 404:
        raise CredentialNotFoundError(message, status_code=status, error_type=error_type)
    raise RemoteRejectedError(message, status_code=status, error_type=error_type)


class RegistryClient:
    """Client for the credential registry admin API.

    Can be used as a context manager:
        with RegistryClient(RegistryConfig(session_token="adm_...")) as registry:
            created = registry.create_credential(request)
            balance = registry.get_balance(created.credential_id)

    Example:
        >>> registry = RegistryClient()  # configuration from environment
        >>> hashes = registry.existing_index()
        >>> registry.set_disabled(7, True)
        >>> registry.delete_credential(7)
    """

    # Re-login attempts after a 401 response
    MAX_REAUTH_RETRIES = 1

    def __init__(
        self,
        config: RegistryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            config: Connection settings. Loaded from environment if None.
            transport: Optional httpx transport (used to inject a mock transport).
        """
        self._config = config
        self._transport = transport
        self._client: httpx.Client | None = None
        self._session_token: str | None = config.session_token if config else None

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def config(self) -> RegistryConfig:
        """Get configuration, lazily loading it from the environment."""
        if self._config is None:
            self._config = RegistryConfig.from_env()
            self._session_token = self._config.session_token
        return self._config

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            config = self.config
            self._client = httpx.Client(
                base_url=config.base_url.rstrip("/"),
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(
                    config.timeout_seconds, connect=config.connect_timeout_seconds
                ),
                transport=self._transport,
            )
            if self._session_token:
                self._client.headers["Authorization"] = f"Bearer {self._session_token}"
        return self._client

    @property
    def is_authenticated(self) -> bool:
        """Return True if a session token is available."""
        return self._session_token is not None

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def login(self) -> str:
        """Obtain a new admin session token with the configured credentials.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If credentials are missing or rejected.
            RegistryConnectionError: If the registry cannot be reached.
        """
        config = self.config
        if not config.can_login:
            raise AuthenticationError(
                "No admin session token and no username/password configured"
            )

        try:
            response = self.client.post(
                "/auth/login",
                json={"username": config.username, "password": config.password},
            )
        except httpx.RequestError as e:
            raise RegistryConnectionError(f"Failed to reach registry for login: {e}") from e

        _raise_for_response(response)
        token = response.json().get("token")
        if not token:
            raise AuthenticationError("Login response did not include a session token")

        self._session_token = token
        self.client.headers["Authorization"] = f"Bearer {token}"
        logger.info(f"Logged in to registry at {config.base_url}")
        return token

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        """Send an authenticated request and return the decoded JSON body.

        Raises:
            RegistryError: Subclass matching the failure.
        """
        config = self.config
        if not self.is_authenticated and config.can_login:
            self.login()

        retries = 0
        while True:
            logger.debug(f"Registry {method} {path}")
            try:
                response = self.client.request(method, path, json=json)
            except httpx.RequestError as e:
                raise RegistryConnectionError(
                    f"Registry {method} {path} failed: {e}"
                ) from e

            if (
                response.status_code == 401
                and config.can_login
                and retries < self.MAX_REAUTH_RETRIES
            ):
                retries += 1
                logger.warning(
                    f"Registry {method} {path} received 401, re-authenticating "
                    f"(attempt {retries}/{self.MAX_REAUTH_RETRIES})"
                )
                self.login()
                continue

            _raise_for_response(response)
            if not response.content:
                return None
            body = response.json()
            if isinstance(body, dict) and body.get("success") is False:
                raise RemoteRejectedError(
                    body.get("message") or f"Registry {method} {path} was not successful",
                    status_code=response.status_code,
                )
            return body

    def list_credentials(self) -> list[CredentialRecord]:
        """List every credential currently held by the registry."""
        body = self._request("GET", "/credentials")
        return [CredentialRecord.from_payload(item) for item in body.get("credentials", [])]

    def existing_index(self) -> dict[str, str | None]:
        """Map content hash -> identity label for registry credentials.

        Credentials that do not expose a hash are left out.
        """
        return {
            record.refresh_token_hash: record.email
            for record in self.list_credentials()
            if record.refresh_token_hash
        }

    def create_credential(self, request: CreateCredentialRequest) -> CreatedCredential:
        """Add a credential to the registry."""
        body = self._request("POST", "/credentials", json=request.to_payload())
        created = CreatedCredential.from_payload(body)
        logger.debug(f"Registry created credential #{created.credential_id}")
        return created

    def get_balance(self, credential_id: int) -> BalanceSnapshot:
        """Fetch the usage/balance snapshot of a credential."""
        body = self._request("GET", f"/credentials/{credential_id}/balance")
        return BalanceSnapshot.from_payload(body)

    def set_disabled(self, credential_id: int, disabled: bool) -> None:
        """Enable or disable a credential."""
        self._request(
            "POST", f"/credentials/{credential_id}/disabled", json={"disabled": disabled}
        )

    def delete_credential(self, credential_id: int) -> None:
        """Delete a credential from the registry."""
        self._request("DELETE", f"/credentials/{credential_id}")

