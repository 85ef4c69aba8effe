"""Registry of intent handlers per intent type, ordered by priority."""

from __future__ import annotations

import threading
from typing import Protocol

from intentnet.types import ErrorCode, Intent, IntentError


class IntentHandler(Protocol):
    """Something that handles intents of a type."""

    priority: int

    def handle(self, intent: Intent) -> None: ...


class HandlerRegistry:
    """Keeps handlers per intent type, highest priority first."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._handlers: dict[str, list[IntentHandler]] = {}

    def register_handler(self, intent_type: str, handler: IntentHandler) -> None:
        """Add ``handler`` before the first handler of lower priority."""
        if not intent_type or handler is None:
            raise IntentError(ErrorCode.INVALID_CONFIGURATION, "Invalid handler registration")
        with self._lock:
            handlers = self._handlers.setdefault(intent_type, [])
            position = next(
                (i for i, h in enumerate(handlers) if handler.priority > h.priority),
                len(handlers),
            )
            handlers.insert(position, handler)

    def unregister_handler(self, intent_type: str) -> None:
        """Remove every handler of ``intent_type``."""
        with self._lock:
            if intent_type not in self._handlers:
                raise LookupError(f"no handlers registered for intent type: {intent_type}")
            del self._handlers[intent_type]

    def get_handler(self, intent_type: str) -> IntentHandler:
        """Return the highest-priority handler of ``intent_type``."""
        with self._lock:
            handlers = self._handlers.get(intent_type)
            if not handlers:
                raise LookupError(f"no handler found for intent type: {intent_type}")
            return handlers[0]

    def list_handlers(self) -> dict[str, list[IntentHandler]]:
        """Return a copy of every registered handler list."""
        with self._lock:
            return {key: list(value) for key, value in self._handlers.items()}

    def handler_count(self, intent_type: str) -> int:
        """Return how many handlers ``intent_type`` has."""
        with self._lock:
            return len(self._handlers.get(intent_type, []))

    def handler_types(self) -> list[str]:
        """Return every intent type with registered handlers."""
        with self._lock:
            return list(self._handlers)