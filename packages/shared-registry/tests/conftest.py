"""Shared fixtures for registry package tests."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from credrelay.registry import RegistryClient, RegistryConfig


@pytest.fixture
def make_client() -> Callable[..., tuple[RegistryClient, list[httpx.Request]]]:
    """Build a RegistryClient backed by an httpx.MockTransport.

    The handler receives each request; every request is also recorded.
    """

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        config: RegistryConfig | None = None,
    ) -> tuple[RegistryClient, list[httpx.Request]]:
        requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        config = config or RegistryConfig(
            base_url="http://registry.test/api/admin", session_token="adm_test"
        )
        client = RegistryClient(config=config, transport=httpx.MockTransport(_record))
        return client, requests

    return _make

