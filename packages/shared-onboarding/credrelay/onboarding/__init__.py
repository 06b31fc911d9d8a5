"""CredRelay Credential Onboarding Package.

Provides bulk onboarding of credentials into the registry including:
- InputParser: Flat and envelope JSON batch parsing
- DuplicateDetector: Content-hash dedup against the registry
- OnboardingPipeline: Create, settle and probe each credential in order
- RollbackCoordinator: Disable-then-delete compensation on failure
- ResultAggregator: Running tallies, progress and batch summary

Usage:
    from credrelay.onboarding import OnboardingPipeline

    pipeline = OnboardingPipeline()
    run = pipeline.import_text(raw_json)
    print(run.summary.message())
"""

from credrelay.onboarding.aggregator import (
    BatchCounters,
    BatchProgress,
    BatchSummary,
    ResultAggregator,
)
from credrelay.onboarding.dedup import (
    DuplicateCheck,
    DuplicateDetector,
    ExistingIndex,
    hash_token,
)
from credrelay.onboarding.exceptions import (
    InvalidTransitionError,
    OnboardingError,
    ParseError,
    RemoteCreateError,
    RemoteProbeError,
    RollbackDeleteError,
    RollbackDisableError,
    RollbackError,
    ValidationError,
)
from credrelay.onboarding.models import ItemStatus, OnboardingItem
from credrelay.onboarding.parser import (
    CredentialInput,
    InputFormat,
    InputParser,
    ParsedBatch,
    parse_batch,
)
from credrelay.onboarding.pipeline import (
    BatchRun,
    OnboardingPipeline,
    PipelineConfig,
    ProgressEvent,
)
from credrelay.onboarding.rollback import (
    RollbackCoordinator,
    RollbackOutcome,
    RollbackResult,
)

__all__ = [
    "BatchCounters",
    "BatchProgress",
    "BatchSummary",
    "ResultAggregator",
    "DuplicateCheck",
    "DuplicateDetector",
    "ExistingIndex",
    "hash_token",
    "InvalidTransitionError",
    "OnboardingError",
    "ParseError",
    "RemoteCreateError",
    "RemoteProbeError",
    "RollbackDeleteError",
    "RollbackDisableError",
    "RollbackError",
    "ValidationError",
    "ItemStatus",
    "OnboardingItem",
    "CredentialInput",
    "InputFormat",
    "InputParser",
    "ParsedBatch",
    "parse_batch",
    "BatchRun",
    "OnboardingPipeline",
    "PipelineConfig",
    "ProgressEvent",
    "RollbackCoordinator",
    "RollbackOutcome",
    "RollbackResult",
]
