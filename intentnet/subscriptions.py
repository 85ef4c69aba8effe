"""Topic subscriptions for intent monitoring, with per-topic statistics."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Any, Protocol

from intentnet.monitoring_config import ConfigManager, IntentMonitoring

_log = logging.getLogger(__name__)

_DEFAULT_WILDCARD = "intent-broadcast.*"
_DISCOVERY_INTERVAL = 30.0

MessageHandler = Callable[[Any], None]


class SubscriptionError(RuntimeError):
    """Raised when a subscription operation cannot be carried out."""


class Subscription(Protocol):
    """A live subscription to one topic."""

    def cancel(self) -> None: ...


class PubSub(Protocol):
    """The publish/subscribe layer, asked for peer counts."""

    def peer_count(self, topic: str) -> int: ...


class Transport(Protocol):
    """The transport that delivers topic messages."""

    def subscribe_to_topic(self, topic: str, handler: MessageHandler) -> Subscription: ...

    def pubsub_manager(self) -> PubSub | None: ...


@dataclass
class TopicStatistics:
    """Statistics kept for one subscribed topic."""

    topic: str
    subscribed_at: datetime
    message_count: int = 0
    last_message: datetime | None = None
    peer_count: int = 0
    is_active: bool = True
    error_count: int = 0
    last_error: str = ""
    last_error_time: datetime | None = None


class TopicSubscriptionManager:
    """Subscribes to intent topics according to the monitoring configuration."""

    def __init__(
        self,
        transport: Transport | None,
        config_manager: ConfigManager,
        message_handler: MessageHandler | None = None,
    ) -> None:
        self._transport = transport
        self._config_manager = config_manager
        self._message_handler = message_handler
        self._lock = threading.RLock()
        self._running = False
        self._subscriptions: dict[str, Subscription] = {}
        self._stats: dict[str, TopicStatistics] = {}
        self._current_config: IntentMonitoring | None = None
        self._stop_event: threading.Event | None = None
        self._discovery_thread: threading.Thread | None = None

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Start the manager and subscribe according to the current configuration."""
        with self._lock:
            if self._running:
                raise SubscriptionError("topic subscription manager already running")
            self._running = True
            config = self._config_manager.get_config()
            self._current_config = config
            try:
                self._subscribe_by_config(config)
            except SubscriptionError as exc:
                _log.error("Failed to subscribe with initial config: %s", exc)

            if config.subscription_mode in ("wildcard", "all"):
                self._stop_event = threading.Event()
                self._discovery_thread = threading.Thread(
                    target=self._discovery_loop,
                    args=(self._stop_event,),
                    name="topic-discovery",
                    daemon=True,
                )
                self._discovery_thread.start()

            _log.info(
                "Topic subscription manager started (mode=%s, subscriptions=%d)",
                config.subscription_mode,
                len(self._subscriptions),
            )

    def stop(self) -> None:
        """Cancel every subscription, clear statistics and stop discovery."""
        with self._lock:
            if not self._running:
                raise SubscriptionError("topic subscription manager not running")
            if self._stop_event is not None:
                self._stop_event.set()
            thread = self._discovery_thread
            self._stop_event = None
            self._discovery_thread = None

            for topic, subscription in self._subscriptions.items():
                try:
                    subscription.cancel()
                except Exception as exc:  # noqa: BLE001 - keep stopping the rest
                    _log.warning("Failed to cancel subscription for %s: %s", topic, exc)

            self._subscriptions = {}
            self._stats = {}
            self._running = False
            _log.info("Topic subscription manager stopped")

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    def is_running(self) -> bool:
        """Tell whether the manager has been started."""
        with self._lock:
            return self._running

    def _require_running(self) -> None:
        if not self._running:
            raise SubscriptionError("subscription manager not running")

    # -- subscribing -------------------------------------------------------

    def subscribe_by_config(self, config: IntentMonitoring | None) -> None:
        """Subscribe to the topics that ``config`` selects."""
        with self._lock:
            self._require_running()
            self._subscribe_by_config(config)

    def _subscribe_by_config(self, config: IntentMonitoring | None) -> None:
        if config is None:
            raise SubscriptionError("configuration cannot be nil")
        mode = config.subscription_mode
        if mode == "disabled":
            _log.info("Subscription mode disabled, no topics will be subscribed")
        elif mode == "explicit":
            topics = config.explicit_topics or self._config_manager.default_explicit_topics()
            self._subscribe_explicit(topics)
        elif mode == "wildcard":
            for pattern in config.wildcard_patterns or [_DEFAULT_WILDCARD]:
                self._subscribe_pattern(pattern)
        elif mode == "all":
            self._subscribe_all()
        else:
            raise SubscriptionError(f"unknown subscription mode: {mode}")

    def subscribe_wildcard(self, pattern: str) -> None:
        """Subscribe to every known topic matching ``pattern``."""
        with self._lock:
            self._require_running()
            self._subscribe_pattern(pattern)

    def _subscribe_pattern(self, pattern: str) -> None:
        matching = [
            topic
            for topic in self._config_manager.all_known_topics()
            if fnmatchcase(topic, pattern)
        ]
        _log.info("Found %d topics matching pattern %s", len(matching), pattern)
        for topic in matching:
            self._try_subscribe(topic)

    def subscribe_explicit(self, topics: Iterable[str]) -> None:
        """Subscribe to each topic in ``topics``."""
        with self._lock:
            self._require_running()
            self._subscribe_explicit(topics)

    def _subscribe_explicit(self, topics: Iterable[str]) -> None:
        for topic in topics:
            self._try_subscribe(topic)

    def subscribe_all(self) -> None:
        """Subscribe to every known intent topic."""
        with self._lock:
            self._require_running()
            self._subscribe_all()

    def _subscribe_all(self) -> None:
        topics = self._config_manager.all_known_topics()
        _log.info("Subscribing to all %d known topics", len(topics))
        for topic in topics:
            self._try_subscribe(topic)

    def _try_subscribe(self, topic: str) -> None:
        try:
            self._subscribe_topic(topic)
        except SubscriptionError as exc:
            _log.error("Failed to subscribe to topic %s: %s", topic, exc)

    def _subscribe_topic(self, topic: str) -> None:
        if topic in self._subscriptions:
            _log.debug("Already subscribed to topic %s", topic)
            return
        if self._transport is None:
            raise SubscriptionError(f"failed to subscribe to topic {topic}: no transport")
        try:
            subscription = self._transport.subscribe_to_topic(topic, self._wrap_handler(topic))
        except Exception as exc:
            raise SubscriptionError(f"failed to subscribe to topic {topic}: {exc}") from exc

        self._subscriptions[topic] = subscription
        self._stats[topic] = TopicStatistics(
            topic=topic,
            subscribed_at=datetime.now(),
            is_active=True,
            peer_count=self._peer_count(topic),
        )
        _log.info("Successfully subscribed to topic %s", topic)

    def _wrap_handler(self, topic: str) -> MessageHandler:
        def handle(message: Any) -> None:
            self._record_message(topic, None)
            if self._message_handler is not None:
                try:
                    self._message_handler(message)
                except Exception as exc:
                    self._record_message(topic, exc)
                    raise

        return handle

    def _record_message(self, topic: str, error: BaseException | None) -> None:
        with self._lock:
            stats = self._stats.get(topic)
            if stats is None:
                return
            now = datetime.now()
            stats.message_count += 1
            stats.last_message = now
            stats.peer_count = self._peer_count(topic)
            if error is not None:
                stats.error_count += 1
                stats.last_error = str(error)
                stats.last_error_time = now

    def _peer_count(self, topic: str) -> int:
        if self._transport is None:
            return 0
        pubsub = self._transport.pubsub_manager()
        if pubsub is None:
            return 0
        return pubsub.peer_count(topic)

    # -- discovery ---------------------------------------------------------

    def discover_and_subscribe(self) -> None:
        """Look for new topics; no discovery source exists yet, so nothing changes."""
        with self._lock:
            self._require_running()
            _log.debug("Topic discovery has no source of new topics")

    def _discovery_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(_DISCOVERY_INTERVAL):
            try:
                self.discover_and_subscribe()
            except SubscriptionError as exc:
                _log.error("Topic discovery failed: %s", exc)

    # -- unsubscribing -----------------------------------------------------

    def unsubscribe(self, topic: str) -> None:
        """Cancel the subscription to ``topic``, keeping its statistics as inactive."""
        with self._lock:
            self._require_running()
            subscription = self._subscriptions.get(topic)
            if subscription is None:
                raise SubscriptionError(f"not subscribed to topic: {topic}")
            try:
                subscription.cancel()
            except Exception as exc:
                raise SubscriptionError(
                    f"failed to cancel subscription for topic {topic}: {exc}"
                ) from exc
            del self._subscriptions[topic]
            stats = self._stats.get(topic)
            if stats is not None:
                stats.is_active = False
            _log.info("Successfully unsubscribed from topic %s", topic)

    def unsubscribe_all(self) -> None:
        """Cancel every subscription; raise if any cancellation failed."""
        with self._lock:
            self._require_running()
            self._unsubscribe_all()
            _log.info("Successfully unsubscribed from all topics")

    def _unsubscribe_all(self) -> None:
        failures = []
        for topic, subscription in self._subscriptions.items():
            try:
                subscription.cancel()
            except Exception as exc:  # noqa: BLE001 - collect and report together
                failures.append(f"topic {topic}: {exc}")
            stats = self._stats.get(topic)
            if stats is not None:
                stats.is_active = False
        self._subscriptions = {}
        if failures:
            raise SubscriptionError(
                "failed to unsubscribe from some topics: " + "; ".join(failures)
            )

    # -- queries -----------------------------------------------------------

    def subscriptions(self) -> list[str]:
        """Return the currently subscribed topics."""
        with self._lock:
            return list(self._subscriptions)

    def topic_stats(self, topic: str) -> TopicStatistics | None:
        """Return a copy of the statistics for ``topic``, or None if unknown."""
        with self._lock:
            stats = self._stats.get(topic)
            return None if stats is None else replace(stats)

    def all_topic_stats(self) -> dict[str, TopicStatistics]:
        """Return copies of the statistics of every tracked topic."""
        with self._lock:
            return {topic: replace(stats) for topic, stats in self._stats.items()}

    # -- reconfiguration ---------------------------------------------------

    def update_config(self, config: IntentMonitoring) -> None:
        """Resubscribe according to ``config`` if it differs from the current one."""
        with self._lock:
            self._require_running()
            if _configs_equal(self._current_config, config):
                _log.debug("Configuration unchanged, skipping update")
                return
            _log.info(
                "Updating subscription configuration from %s to %s",
                self._current_config.subscription_mode if self._current_config else None,
                config.subscription_mode if config else None,
            )
            try:
                self._unsubscribe_all()
            except SubscriptionError as exc:
                _log.error("Failed to unsubscribe from existing topics: %s", exc)
            try:
                self._subscribe_by_config(config)
            except SubscriptionError as exc:
                raise SubscriptionError(
                    f"failed to subscribe with new configuration: {exc}"
                ) from exc
            self._current_config = config
            _log.info(
                "Subscription configuration updated (mode=%s, subscriptions=%d)",
                config.subscription_mode,
                len(self._subscriptions),
            )


def _configs_equal(a: IntentMonitoring | None, b: IntentMonitoring | None) -> bool:
    if a is None or b is None:
        return a is b
    return (
        a.subscription_mode == b.subscription_mode
        and list(a.explicit_topics) == list(b.explicit_topics)
        and list(a.wildcard_patterns) == list(b.wildcard_patterns)
    )