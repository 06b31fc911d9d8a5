"""CredRelay Credential Registry Package.

Provides access to the credential registry admin API:
- RegistryClient: httpx client for credential create/probe/disable/delete
- RegistryConfig: Connection settings (environment-driven)
- Data models for credential records, create requests and balance snapshots

Usage:
    from credrelay.registry import RegistryClient, RegistryConfig

    with RegistryClient(RegistryConfig(session_token="adm_...")) as registry:
        records = registry.list_credentials()
"""

from credrelay.registry.client import RegistryClient
from credrelay.registry.config import RegistryConfig
from credrelay.registry.exceptions import (
    AuthenticationError,
    CredentialNotFoundError,
    RegistryConnectionError,
    RegistryError,
    RemoteRejectedError,
)
from credrelay.registry.models import (
    AuthMethod,
    BalanceSnapshot,
    CreateCredentialRequest,
    CreatedCredential,
    CredentialRecord,
)

__all__ = [
    "RegistryClient",
    "RegistryConfig",
    "RegistryError",
    "AuthenticationError",
    "CredentialNotFoundError",
    "RegistryConnectionError",
    "RemoteRejectedError",
    "AuthMethod",
    "BalanceSnapshot",
    "CreateCredentialRequest",
    "CreatedCredential",
    "CredentialRecord",
]
