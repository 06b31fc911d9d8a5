"""Shared fixtures for onboarding package tests."""

from itertools import count
from unittest.mock import MagicMock

import pytest
from credrelay.registry import BalanceSnapshot, CreatedCredential, RegistryClient


@pytest.fixture
def mock_registry():
    """Mock RegistryClient with an empty registry.

    Create calls return sequential ids starting at 101 and every probe
    returns a healthy balance snapshot.
    """
    registry = MagicMock(spec=RegistryClient)
    ids = count(101)

    def _create(request):
        return CreatedCredential(credential_id=next(ids), message="added")

    def _balance(credential_id):
        return BalanceSnapshot(credential_id=credential_id, current_usage=0, usage_limit=50)

    registry.existing_index.return_value = {}
    registry.create_credential.side_effect = _create
    registry.get_balance.side_effect = _balance
    return registry


@pytest.fixture
def sleep_calls():
    """Record settle pauses instead of sleeping."""
    return []


@pytest.fixture
def pipeline(mock_registry, sleep_calls):
    """OnboardingPipeline wired to the mock registry with no real sleeping."""
    from credrelay.onboarding import OnboardingPipeline, PipelineConfig

    return OnboardingPipeline(
        registry=mock_registry,
        config=PipelineConfig(settle_seconds=1.0, skip_flagged=True),
        sleep=sleep_calls.append,
    )
