"""Intent processing pipeline and its standard stages."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

from intentnet.types import (
    DEFAULT_TTL,
    PRIORITY_LOW,
    PRIORITY_URGENT,
    ErrorCode,
    Intent,
    IntentError,
)

_RETRY_STEP = 0.1


class ProcessingStage(Protocol):
    """One step an intent passes through."""

    name: str
    priority: int

    def process(self, intent: Intent) -> None: ...

    def should_process(self, intent: Intent) -> bool: ...


class IntentValidator(Protocol):
    def validate_intent(self, intent: Intent) -> None: ...


class IntentSigner(Protocol):
    def verify_signature(self, intent: Intent) -> None: ...


class IntentTransformer(Protocol):
    name: str

    def transform(self, intent: Intent) -> None: ...


class IntentFilterRule(Protocol):
    name: str

    def should_allow(self, intent: Intent) -> bool: ...


@dataclass
class PipelineConfig:
    """Timeouts and retry settings of a pipeline."""

    stage_timeout: timedelta = field(default_factory=timedelta)
    pipeline_timeout: timedelta = field(default_factory=timedelta)
    max_retries: int = 0
    enable_async: bool = False


def default_pipeline_config() -> PipelineConfig:
    """Return the default pipeline configuration."""
    return PipelineConfig(
        stage_timeout=timedelta(seconds=10),
        pipeline_timeout=timedelta(seconds=60),
        max_retries=3,
        enable_async=True,
    )


class Pipeline:
    """Runs an intent through its stages, highest priority first."""

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config
        self._stages: list[ProcessingStage] = []

    def add_stage(self, stage: ProcessingStage) -> None:
        """Add ``stage`` and keep the stages ordered by priority."""
        self._stages.append(stage)
        self._stages.sort(key=lambda s: s.priority, reverse=True)

    def process(self, intent: Intent | None) -> None:
        """Run ``intent`` through every stage that wants it."""
        if intent is None:
            raise IntentError(ErrorCode.INVALID_FORMAT, "Intent cannot be nil")
        if not self._stages:
            return

        pipeline_deadline = time.monotonic() + self.config.pipeline_timeout.total_seconds()
        processed = 0
        for position, stage in enumerate(self._stages):
            if not stage.should_process(intent):
                continue
            deadline = min(
                pipeline_deadline,
                time.monotonic() + self.config.stage_timeout.total_seconds(),
            )
            try:
                self._run_with_retry(stage, intent, deadline)
            except Exception as exc:
                raise IntentError.wrap(
                    exc,
                    ErrorCode.PROCESSING_FAILED,
                    f"Stage '{stage.name}' failed at position {position}",
                ) from exc
            processed += 1

        if processed == 0:
            raise IntentError(
                ErrorCode.PROCESSING_FAILED,
                "No pipeline stages processed the intent",
                intent.type,
            )

    def _run_with_retry(self, stage: ProcessingStage, intent: Intent, deadline: float) -> None:
        last_error: Exception | None = None
        for attempt in range(self.config.max_retries + 1):
            try:
                stage.process(intent)
                return
            except Exception as exc:
                last_error = exc
            if time.monotonic() >= deadline:
                raise TimeoutError("context deadline exceeded") from last_error
            if attempt < self.config.max_retries:
                time.sleep(_RETRY_STEP * (attempt + 1))
        if last_error is not None:
            raise last_error

    def stages(self) -> list[ProcessingStage]:
        """Return the stages in processing order."""
        return list(self._stages)

    def stats(self) -> dict[str, Any]:
        """Return the pipeline's settings and stage names."""
        return {
            "total_stages": len(self._stages),
            "pipeline_timeout": str(self.config.pipeline_timeout),
            "stage_timeout": str(self.config.stage_timeout),
            "max_retries": self.config.max_retries,
            "async_enabled": self.config.enable_async,
            "stage_names": [stage.name for stage in self._stages],
        }


class ValidationStage:
    """Validates every intent."""

    def __init__(self, validator: IntentValidator) -> None:
        self.name = "validation"
        self.priority = 100
        self._validator = validator

    def process(self, intent: Intent) -> None:
        """Validate ``intent``."""
        self._validator.validate_intent(intent)

    def should_process(self, intent: Intent) -> bool:
        """Every intent is validated."""
        return True


class SignatureStage:
    """Verifies the signature of signed intents."""

    def __init__(self, signer: IntentSigner) -> None:
        self.name = "signature"
        self.priority = 90
        self._signer = signer

    def process(self, intent: Intent) -> None:
        """Verify the signature of ``intent``."""
        self._signer.verify_signature(intent)

    def should_process(self, intent: Intent) -> bool:
        """Only signed intents are verified."""
        return len(intent.signature) > 0


class EnrichmentStage:
    """Stamps intents with processing time and metadata."""

    def __init__(self) -> None:
        self.name = "enrichment"
        self.priority = 80

    def process(self, intent: Intent) -> None:
        """Add the processing timestamp and processing metadata."""
        if not intent.processed_at:
            intent.processed_at = int(time.time())
        if intent.metadata is None:
            intent.metadata = {}
        intent.metadata["processed_by"] = "pipeline"
        intent.metadata["processing_stage"] = "enrichment"
        intent.metadata["enriched_at"] = datetime.now().astimezone().isoformat(timespec="seconds")

    def should_process(self, intent: Intent) -> bool:
        """Every intent is enriched."""
        return True


class TransformationStage:
    """Applies type-specific transformers, then normalises every intent."""

    def __init__(self) -> None:
        self.name = "transformation"
        self.priority = 70
        self._transformers: dict[str, IntentTransformer] = {}

    def process(self, intent: Intent) -> None:
        """Transform ``intent`` and apply the default normalisations."""
        transformer = self._transformers.get(intent.type)
        if transformer is not None:
            try:
                transformer.transform(intent)
            except Exception as exc:
                raise IntentError.wrap(
                    exc,
                    ErrorCode.PROCESSING_FAILED,
                    f"Transformation failed for type {intent.type}",
                ) from exc

        intent.type = intent.type.lower()
        intent.priority = max(PRIORITY_LOW, min(intent.priority, PRIORITY_URGENT))
        if intent.ttl == 0:
            intent.ttl = int(DEFAULT_TTL.total_seconds())

    def should_process(self, intent: Intent) -> bool:
        """Default transformations apply to every intent."""
        return True

    def add_transformer(self, intent_type: str, transformer: IntentTransformer) -> None:
        """Use ``transformer`` for intents of ``intent_type``."""
        self._transformers[intent_type] = transformer


class FilteringStage:
    """Rejects intents that any of its filters disallows."""

    def __init__(self) -> None:
        self.name = "filtering"
        self.priority = 60
        self._filters: list[IntentFilterRule] = []

    def process(self, intent: Intent) -> None:
        """Raise if any filter rejects ``intent``."""
        for rule in self._filters:
            try:
                allowed = rule.should_allow(intent)
            except Exception as exc:
                raise IntentError.wrap(
                    exc, ErrorCode.PROCESSING_FAILED, f"Filter '{rule.name}' failed"
                ) from exc
            if not allowed:
                raise IntentError(
                    ErrorCode.PROCESSING_FAILED,
                    f"Intent filtered out by '{rule.name}'",
                    intent.id,
                )

    def should_process(self, intent: Intent) -> bool:
        """Only runs when filters are configured."""
        return bool(self._filters)

    def add_filter(self, intent_filter: IntentFilterRule) -> None:
        """Append ``intent_filter`` to the filters."""
        self._filters.append(intent_filter)