"""Credential onboarding pipeline.

Drives each credential of a batch, one at a time, through:

    pending -> checking -> duplicate
                        -> verifying -> verified
                                     -> failed (+ compensating rollback)

Flagged inputs may be moved straight from pending to skipped, and local
validation failures move from checking to failed without touching the
registry.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from pydantic import BaseModel

from credrelay.onboarding.aggregator import (
    BatchCounters,
    BatchProgress,
    BatchSummary,
    ResultAggregator,
)
from credrelay.onboarding.dedup import DuplicateDetector, ExistingIndex, hash_token
from credrelay.onboarding.exceptions import (
    RemoteCreateError,
    RemoteProbeError,
    ValidationError,
)
from credrelay.onboarding.models import ItemStatus, OnboardingItem
from credrelay.onboarding.parser import CredentialInput, InputFormat, InputParser, ParsedBatch
from credrelay.onboarding.rollback import RollbackCoordinator, RollbackResult
from credrelay.registry.models import (
    AuthMethod,
    BalanceSnapshot,
    CreateCredentialRequest,
    CreatedCredential,
)

if TYPE_CHECKING:
    from credrelay.registry import RegistryClient

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Credential already exists"


class PipelineConfig(BaseModel):
    """Configuration for the onboarding pipeline."""

    # Pause between create and probe; the registry is eventually consistent
    settle_seconds: float = 1.0
    skip_flagged: bool = True
    default_priority: int = 0

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Load configuration from environment variables."""
        return cls(
            settle_seconds=float(os.getenv("CREDRELAY_SETTLE_SECONDS", "1.0")),
            skip_flagged=os.getenv("CREDRELAY_SKIP_FLAGGED", "true").lower()
            not in ("0", "false", "no"),
        )


@dataclass
class BatchRun:
    """Caller-owned state of one batch: items, progress and tallies."""

    items: list[OnboardingItem]
    inputs: list[CredentialInput] = field(repr=False)
    aggregator: ResultAggregator = field(repr=False)
    input_format: InputFormat | None = None
    dropped: int = 0
    cancelled: bool = False
    existing_index: ExistingIndex | None = field(default=None, repr=False)
    summary: BatchSummary | None = None

    @classmethod
    def from_inputs(
        cls,
        inputs: Sequence[CredentialInput],
        input_format: InputFormat | None = None,
        dropped: int = 0,
    ) -> BatchRun:
        """Create a run with every item pending."""
        inputs = list(inputs)
        return cls(
            items=[OnboardingItem(index=i + 1) for i in range(len(inputs))],
            inputs=inputs,
            aggregator=ResultAggregator(total=len(inputs)),
            input_format=input_format,
            dropped=dropped,
        )

    @classmethod
    def from_parsed(cls, batch: ParsedBatch) -> BatchRun:
        """Create a run from parser output."""
        return cls.from_inputs(batch.inputs, batch.format, batch.dropped)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def progress(self) -> BatchProgress:
        """Current progress cursor."""
        return self.aggregator.progress

    @property
    def counters(self) -> BatchCounters:
        """Running tallies."""
        return self.aggregator.counters


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted after each item reaches a terminal status.

    ``item`` is a snapshot; later changes to the run do not affect it.
    """

    progress: BatchProgress
    item: OnboardingItem


class OnboardingPipeline:
    """Onboards batches of credentials into the registry.

    Items are processed strictly in order with at most one create/settle/probe
    sequence in flight. A failed verification after creation triggers a
    disable-then-delete rollback. Cancellation is honored only between items.

    Example:
        >>> pipeline = OnboardingPipeline(registry=RegistryClient())
        >>> run = pipeline.import_text('[{"token": "abc"}]')
        >>> run.summary.message()
        'Imported and verified 1 credentials'

    Streaming progress:
        >>> run = pipeline.start(parsed_batch)
        >>> for event in pipeline.process(run):
        ...     print(f"{event.progress.current}/{event.progress.total}")
    """

    def __init__(
        self,
        registry: RegistryClient | None = None,
        config: PipelineConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        parser: InputParser | None = None,
    ):
        """Initialize the pipeline.

        Args:
            registry: Registry client. Created from environment if None.
            config: Pipeline settings. Loaded from environment if None.
            sleep: Function used for the settle pause.
            parser: Parser for raw text input.
        """
        self._registry = registry
        self.config = config or PipelineConfig.from_env()
        self._sleep = sleep
        self.parser = parser or InputParser()
        self._cancel_requested = threading.Event()

    @property
    def registry(self) -> RegistryClient:
        """Lazy-initialize registry client."""
        if self._registry is None:
            from credrelay.registry import RegistryClient

            self._registry = RegistryClient()
        return self._registry

    @property
    def rollback_coordinator(self) -> RollbackCoordinator:
        return RollbackCoordinator(self.registry)

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next item starts."""
        self._cancel_requested.set()

    def load_existing_index(self) -> ExistingIndex:
        """Seed an index from the hashes the registry already holds."""
        index = ExistingIndex(self.registry.existing_index())
        logger.info(f"Loaded {len(index)} existing credential hashes from registry")
        return index

    def start(self, source: ParsedBatch | Sequence[CredentialInput]) -> BatchRun:
        """Create a pending BatchRun for parsed input or a list of inputs."""
        if isinstance(source, ParsedBatch):
            return BatchRun.from_parsed(source)
        return BatchRun.from_inputs(source)

    def process(
        self, run: BatchRun, index: ExistingIndex | None = None
    ) -> Iterator[ProgressEvent]:
        """Process every pending item of a run, yielding progress after each.

        Clears any earlier cancel request; a ``cancel()`` made after this call
        is honored even before iteration starts. Items that are no longer
        pending are left untouched, so a cancelled run can be resumed.

        Args:
            run: The batch to process.
            index: Hashes already onboarded. Seeded from the registry if None.
                Grows in place as items are verified.

        Returns:
            Iterator of ProgressEvent, one after each item reaches a terminal
            status.
        """
        self._cancel_requested.clear()
        return self._iter_events(run, index)

    def _iter_events(
        self, run: BatchRun, index: ExistingIndex | None
    ) -> Iterator[ProgressEvent]:
        if index is None:
            index = self.load_existing_index()
        run.existing_index = index
        detector = DuplicateDetector(index)

        pending = sum(1 for item in run.items if item.status == ItemStatus.PENDING)
        logger.info(f"Starting onboarding of {pending} of {run.total} credentials")
        try:
            for item, credential in zip(run.items, run.inputs):
                if item.status != ItemStatus.PENDING:
                    continue
                if self._cancel_requested.is_set():
                    logger.warning(
                        f"Onboarding cancelled after {run.progress.current}/{run.total} items"
                    )
                    break

                self._process_item(item, credential, detector)
                progress = run.aggregator.record(item)
                yield ProgressEvent(progress=progress, item=replace(item))
        finally:
            run.cancelled = run.progress.current < run.total
            run.summary = run.aggregator.summary(cancelled=run.cancelled)

    def run(
        self,
        source: ParsedBatch | Sequence[CredentialInput],
        index: ExistingIndex | None = None,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> BatchRun:
        """Process a whole batch and return the finished run."""
        batch_run = self.start(source)
        for event in self.process(batch_run, index=index):
            if on_progress is not None:
                on_progress(event)
        return batch_run

    def import_text(
        self,
        raw: str,
        index: ExistingIndex | None = None,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> BatchRun:
        """Parse raw batch text and onboard it.

        Raises:
            ParseError: If the text cannot be parsed; no registry call is made.
        """
        batch = self.parser.parse(raw)
        return self.run(batch, index=index, on_progress=on_progress)

    def validate_input(self, credential: CredentialInput) -> AuthMethod:
        """Validate a credential locally and select its auth method.

        Raises:
            ValidationError: If the token is missing or only one of
                client id/client secret is supplied.
        """
        if not credential.token or not credential.token.strip():
            raise ValidationError("Missing token")

        has_id = bool(credential.client_id)
        has_secret = bool(credential.client_secret)
        if has_id != has_secret:
            raise ValidationError(
                "clientId and clientSecret must be supplied together for idc auth"
            )
        return AuthMethod.IDC if has_id else AuthMethod.SOCIAL

    def build_request(
        self, credential: CredentialInput, auth_method: AuthMethod
    ) -> CreateCredentialRequest:
        """Map a normalized input onto a registry create request."""
        priority = credential.priority
        return CreateCredentialRequest(
            refresh_token=credential.token.strip(),
            auth_method=auth_method,
            client_id=credential.client_id,
            client_secret=credential.client_secret,
            priority=priority if priority is not None else self.config.default_priority,
            auth_region=credential.resolved_auth_region,
            api_region=credential.api_region,
            machine_id=credential.machine_id,
        )

    def _process_item(
        self,
        item: OnboardingItem,
        credential: CredentialInput,
        detector: DuplicateDetector,
    ) -> None:
        """Drive one item to a terminal status."""
        item.identity = credential.identity_hint

        if credential.is_flagged and self.config.skip_flagged:
            item.advance(ItemStatus.SKIPPED)
            item.error = f"Skipped: source reported status '{credential.status}'"
            logger.info(f"Skipping {item.label}: flagged by source")
            return

        item.advance(ItemStatus.CHECKING)
        try:
            auth_method = self.validate_input(credential)
        except ValidationError as e:
            item.advance(ItemStatus.FAILED)
            item.error = str(e)
            item.record_rollback(RollbackResult.skipped())
            logger.warning(f"Validation failed for {item.label}: {e}")
            return

        item.token_hash = hash_token(credential.token)
        check = detector.check(item.token_hash)
        if check.is_duplicate:
            item.advance(ItemStatus.DUPLICATE)
            item.error = DUPLICATE_MESSAGE
            item.identity = check.existing_identity or credential.identity_hint
            logger.info(f"Duplicate {item.label} (hash {item.token_hash[:12]})")
            return

        item.advance(ItemStatus.VERIFYING)
        try:
            created = self._create(self.build_request(credential, auth_method))
            item.credential_id = created.credential_id
            self._sleep(self.config.settle_seconds)
            balance = self._probe(created.credential_id)
        except (RemoteCreateError, RemoteProbeError) as e:
            item.advance(ItemStatus.FAILED)
            item.error = str(e)
            logger.warning(f"Verification failed for {item.label}: {e}")
            self._compensate(item)
            return
        except KeyboardInterrupt:
            # Undo the half-created credential, then stop before the next item
            item.advance(ItemStatus.FAILED)
            item.error = "Interrupted during verification"
            logger.warning(f"Interrupted while verifying {item.label}; cancelling batch")
            self._compensate(item)
            self.cancel()
            return

        item.advance(ItemStatus.VERIFIED)
        item.usage = balance.usage_display
        item.identity = created.email or credential.identity_hint
        detector.commit(item.token_hash, item.identity)
        logger.info(f"Verified {item.label} as credential #{created.credential_id}")

    def _compensate(self, item: OnboardingItem) -> None:
        if item.credential_id is not None:
            item.record_rollback(self.rollback_coordinator.rollback(item.credential_id))
        else:
            item.record_rollback(RollbackResult.skipped())

    def _create(self, request: CreateCredentialRequest) -> CreatedCredential:
        try:
            return self.registry.create_credential(request)
        except Exception as e:
            raise RemoteCreateError(f"Create failed: {e}") from e

    def _probe(self, credential_id: int) -> BalanceSnapshot:
        try:
            return self.registry.get_balance(credential_id)
        except Exception as e:
            raise RemoteProbeError(f"Verification probe failed: {e}", credential_id) from e
