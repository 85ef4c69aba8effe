"""Intent processor: runs intents through a pipeline and their handlers."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Protocol

from intentnet.types import ErrorCode, Intent, IntentError, IntentStatus

_log = logging.getLogger(__name__)

_METRICS_INTERVAL = 30.0
_BACKOFF_STEP = 0.1


class IntentHandler(Protocol):
    """Something that handles intents of a type."""

    priority: int

    def handle(self, intent: Intent) -> None: ...


class ProcessingPipeline(Protocol):
    """Preprocessing applied to an intent before its handlers run."""

    def process(self, intent: Intent) -> None: ...


class Registry(Protocol):
    """Where handlers are registered per intent type."""

    def register_handler(self, intent_type: str, handler: IntentHandler) -> None: ...

    def unregister_handler(self, intent_type: str) -> None: ...

    def list_handlers(self) -> dict[str, list[IntentHandler]]: ...


@dataclass
class ProcessorConfig:
    """Settings of the intent processor."""

    max_concurrent_processing: int = 0
    enable_async: bool = False
    retry_attempts: int = 0
    timeout_seconds: int = 0


def default_processor_config() -> ProcessorConfig:
    """Return the default processor configuration."""
    return ProcessorConfig(
        max_concurrent_processing=100,
        enable_async=True,
        retry_attempts=3,
        timeout_seconds=30,
    )


@dataclass
class ProcessingStatus:
    """Counters describing the processor's work so far."""

    active_intents: int = 0
    processed_count: int = 0
    failed_count: int = 0
    average_latency: int = 0
    handler_status: dict[str, Any] = field(default_factory=dict)
    pipeline_status: dict[str, Any] = field(default_factory=dict)


@dataclass
class _Metrics:
    processed_count: int = 0
    failed_count: int = 0
    average_latency: int = 0
    active_processing: int = 0


def _status_text(status: Any) -> str:
    return str(getattr(status, "value", status))


class Processor:
    """Coordinates pipeline preprocessing and handler execution for intents."""

    def __init__(
        self,
        pipeline: ProcessingPipeline | None,
        registry: Registry | None,
        config: ProcessorConfig | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.registry = registry
        self.config = config if config is not None else default_processor_config()
        self._metrics = _Metrics()
        self._lock = threading.RLock()
        self._stop: threading.Event | None = None

    # -- processing --------------------------------------------------------

    def process_incoming_intent(self, intent: Intent | None) -> None:
        """Preprocess ``intent`` and run every handler registered for its type."""
        if intent is None:
            raise IntentError(ErrorCode.INVALID_FORMAT, "Intent cannot be nil")

        started = time.monotonic()
        _log.info("Processing incoming intent: %s, type: %s", intent.id, intent.type)
        with self._begin(started):
            try:
                self._run_pipeline(intent)
            except Exception as exc:
                _log.error("Pipeline processing failed for intent %s: %s", intent.id, exc)
                self._record(False, _elapsed_ms(started))
                raise IntentError.wrap(
                    exc, ErrorCode.PROCESSING_FAILED, "Pipeline processing failed"
                ) from exc

            try:
                handlers = self._find_handlers(intent.type)
            except Exception as exc:
                _log.error("Failed to find handlers for intent %s: %s", intent.id, exc)
                self._record(False, _elapsed_ms(started))
                raise IntentError.wrap(
                    exc, ErrorCode.HANDLER_NOT_FOUND, "No handlers found"
                ) from exc

            try:
                self._execute_handlers(intent, handlers)
            except Exception as exc:
                _log.error("Handler execution failed for intent %s: %s", intent.id, exc)
                self._record(False, _elapsed_ms(started))
                raise IntentError.wrap(
                    exc, ErrorCode.PROCESSING_FAILED, "Handler execution failed"
                ) from exc

            _log.info("Intent processed successfully: %s", intent.id)

    def process_outgoing_intent(self, intent: Intent | None) -> None:
        """Preprocess a created or validated ``intent`` and mark it processed."""
        if intent is None:
            raise IntentError(ErrorCode.INVALID_FORMAT, "Intent cannot be nil")

        started = time.monotonic()
        _log.info("Processing outgoing intent: %s, type: %s", intent.id, intent.type)
        with self._begin(started):
            if intent.status not in (IntentStatus.CREATED, IntentStatus.VALIDATED):
                raise IntentError(
                    ErrorCode.INVALID_FORMAT,
                    "Intent must be in created or validated status for outgoing processing",
                    _status_text(intent.status),
                )

            try:
                self._run_pipeline(intent)
            except Exception as exc:
                _log.error(
                    "Outgoing pipeline processing failed for intent %s: %s", intent.id, exc
                )
                self._record(False, _elapsed_ms(started))
                raise IntentError.wrap(
                    exc, ErrorCode.PROCESSING_FAILED, "Outgoing pipeline processing failed"
                ) from exc

            intent.status = IntentStatus.PROCESSED
            intent.processed_at = int(time.time())
            _log.info("Outgoing intent processed successfully: %s", intent.id)

    def _begin(self, started: float) -> _ActiveScope:
        return _ActiveScope(self, started)

    def _run_pipeline(self, intent: Intent) -> None:
        if self.pipeline is None:
            _log.warning("No processing pipeline configured")
            return
        self.pipeline.process(intent)

    def _find_handlers(self, intent_type: str) -> list[IntentHandler]:
        if self.registry is None:
            raise IntentError(ErrorCode.HANDLER_NOT_FOUND, "Handler registry not initialized")
        handlers = self.registry.list_handlers().get(intent_type, [])
        if not handlers:
            raise IntentError(
                ErrorCode.HANDLER_NOT_FOUND, "No handlers found for intent type", intent_type
            )
        return handlers

    def _execute_handlers(self, intent: Intent, handlers: list[IntentHandler]) -> None:
        last_error: Exception | None = None
        successes = 0
        for number, handler in enumerate(handlers, start=1):
            _log.debug(
                "Executing handler %d/%d for intent %s", number, len(handlers), intent.id
            )
            deadline = time.monotonic() + self.config.timeout_seconds
            try:
                self._execute_with_retry(intent, handler, deadline)
            except Exception as exc:
                _log.error("Handler execution failed for intent %s: %s", intent.id, exc)
                last_error = exc
                continue
            successes += 1

        if successes == 0 and last_error is not None:
            raise IntentError.wrap(
                last_error, ErrorCode.PROCESSING_FAILED, "All handlers failed"
            ) from last_error
        if successes == 0:
            raise IntentError(ErrorCode.PROCESSING_FAILED, "No handlers executed successfully")
        _log.info(
            "Successfully executed %d/%d handlers for intent %s",
            successes,
            len(handlers),
            intent.id,
        )

    def _execute_with_retry(
        self, intent: Intent, handler: IntentHandler, deadline: float
    ) -> None:
        last_error: Exception | None = None
        for attempt in range(self.config.retry_attempts + 1):
            if attempt > 0:
                _log.debug(
                    "Retrying handler execution for intent %s, attempt %d/%d",
                    intent.id,
                    attempt,
                    self.config.retry_attempts,
                )
                backoff = attempt * attempt * _BACKOFF_STEP
                remaining = deadline - time.monotonic()
                if backoff >= remaining:
                    time.sleep(max(remaining, 0.0))
                    raise TimeoutError("context deadline exceeded") from last_error
                time.sleep(backoff)
            try:
                handler.handle(intent)
                return
            except Exception as exc:
                last_error = exc
            if time.monotonic() >= deadline:
                raise TimeoutError("context deadline exceeded") from last_error
        if last_error is not None:
            raise last_error

    def _record(self, success: bool, latency_ms: int) -> None:
        with self._lock:
            metrics = self._metrics
            if success:
                metrics.processed_count += 1
            else:
                metrics.failed_count += 1
            total = metrics.processed_count + metrics.failed_count
            if total > 0:
                metrics.average_latency = (
                    metrics.average_latency * (total - 1) + latency_ms
                ) // total

    # -- handler registration ---------------------------------------------

    def register_handler(self, intent_type: str, handler: IntentHandler | None) -> None:
        """Register ``handler`` for ``intent_type`` in the registry."""
        if not intent_type or not intent_type.strip():
            raise IntentError(ErrorCode.INVALID_CONFIGURATION, "Intent type cannot be empty")
        if handler is None:
            raise IntentError(ErrorCode.INVALID_CONFIGURATION, "Handler cannot be nil")
        if self.registry is None:
            raise IntentError(ErrorCode.HANDLER_NOT_FOUND, "Handler registry not initialized")
        _log.info("Registering handler for intent type: %s", intent_type)
        self.registry.register_handler(intent_type, handler)

    def unregister_handler(self, intent_type: str) -> None:
        """Remove the handlers of ``intent_type`` from the registry."""
        if not intent_type or not intent_type.strip():
            raise IntentError(ErrorCode.INVALID_CONFIGURATION, "Intent type cannot be empty")
        if self.registry is None:
            raise IntentError(ErrorCode.HANDLER_NOT_FOUND, "Handler registry not initialized")
        _log.info("Unregistering handler for intent type: %s", intent_type)
        self.registry.unregister_handler(intent_type)

    # -- status ------------------------------------------------------------

    def processing_status(self) -> ProcessingStatus:
        """Return the current processing counters."""
        with self._lock:
            metrics = self._metrics
            return ProcessingStatus(
                active_intents=metrics.active_processing,
                processed_count=metrics.processed_count,
                failed_count=metrics.failed_count,
                average_latency=metrics.average_latency,
            )

    def health_status(self) -> dict[str, Any]:
        """Return counters, success rate and whether the processor is overloaded."""
        with self._lock:
            metrics = self._metrics
            total = metrics.processed_count + metrics.failed_count
            success_rate = metrics.processed_count / total * 100.0 if total else 0.0
            overloaded = metrics.active_processing > self.config.max_concurrent_processing
            return {
                "status": "overloaded" if overloaded else "healthy",
                "processed_count": metrics.processed_count,
                "failed_count": metrics.failed_count,
                "active_processing": metrics.active_processing,
                "average_latency": metrics.average_latency,
                "success_rate": success_rate,
            }

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> threading.Thread:
        """Start logging metrics periodically in a background thread and return it."""
        _log.info("Starting Intent Processor")
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            stop = threading.Event()
            self._stop = stop
        thread = threading.Thread(
            target=self._collect_metrics_loop, args=(stop,), name="processor-metrics", daemon=True
        )
        thread.start()
        return thread

    def stop(self) -> None:
        """Stop the background metrics logging."""
        _log.info("Stopping Intent Processor")
        with self._lock:
            if self._stop is not None:
                self._stop.set()
                self._stop = None

    def _collect_metrics_loop(self, stop: threading.Event) -> None:
        while not stop.wait(_METRICS_INTERVAL):
            with self._lock:
                metrics = replace(self._metrics)
            _log.info(
                "Processing metrics - Processed: %d, Failed: %d, Active: %d, Avg Latency: %dms",
                metrics.processed_count,
                metrics.failed_count,
                metrics.active_processing,
                metrics.average_latency,
            )


class _ActiveScope:
    """Counts an intent as active while processing and records it as done on exit."""

    def __init__(self, processor: Processor, started: float) -> None:
        self._processor = processor
        self._started = started

    def __enter__(self) -> None:
        with self._processor._lock:
            self._processor._metrics.active_processing += 1

    def __exit__(self, *exc_info: object) -> None:
        with self._processor._lock:
            self._processor._metrics.active_processing -= 1
        self._processor._record(True, _elapsed_ms(self._started))


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)