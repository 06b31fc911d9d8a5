"""Shared pytest fixtures for CredRelay packages."""

import json

import pytest


@pytest.fixture(autouse=True)
def clean_credrelay_env(monkeypatch):
    """Keep host CREDRELAY_* settings from leaking into tests."""
    for var in (
        "CREDRELAY_ADMIN_URL",
        "CREDRELAY_ADMIN_TOKEN",
        "CREDRELAY_ADMIN_USERNAME",
        "CREDRELAY_ADMIN_PASSWORD",
        "CREDRELAY_HTTP_TIMEOUT",
        "CREDRELAY_SETTLE_SECONDS",
        "CREDRELAY_SKIP_FLAGGED",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def sample_flat_batch():
    """Flat batch text: one social and one idc credential."""
    return json.dumps(
        [
            {"token": "flat-token-1", "priority": 1},
            {
                "token": "flat-token-2",
                "clientId": "client-abc",
                "clientSecret": "secret-abc",
                "authRegion": "us-east-1",
            },
        ]
    )


@pytest.fixture
def sample_envelope_batch():
    """Envelope batch text with one healthy and one flagged account."""
    return json.dumps(
        {
            "version": 1,
            "exportedAt": "2025-01-15T10:30:00Z",
            "accounts": [
                {
                    "email": "alice@example.com",
                    "machineId": "machine-1",
                    "status": "active",
                    "credentials": {"token": "env-token-1", "region": "us-east-1"},
                },
                {
                    "email": "bob@example.com",
                    "status": "error",
                    "credentials": {"token": "env-token-2"},
                },
            ],
        }
    )
