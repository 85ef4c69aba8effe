"""Intent monitoring manager: lifecycle and aggregated subscription statistics."""

from __future__ import annotations

from dataclasses import dataclass, field

from intentnet.monitoring_config import ConfigManager, IntentMonitoring
from intentnet.subscriptions import TopicStatistics, TopicSubscriptionManager


@dataclass
class SubscriptionStatus:
    """Current subscriptions and their message totals."""

    mode: str
    active_subscriptions: list[str] = field(default_factory=list)
    topic_stats: dict[str, TopicStatistics] = field(default_factory=dict)
    total_messages: int = 0
    total_errors: int = 0


@dataclass
class TypeStatistics:
    """Statistics for one intent type."""

    count: int = 0
    last_received: str = ""
    average_size: int = 0
    error_count: int = 0


@dataclass
class SenderStatistics:
    """Statistics for one sender."""

    count: int = 0
    last_received: str = ""
    intent_types: list[str] = field(default_factory=list)
    error_count: int = 0


@dataclass
class MonitoringStatistics:
    """Aggregated monitoring statistics."""

    total_received: int = 0
    total_filtered: int = 0
    total_duplicates: int = 0
    by_type: dict[str, TypeStatistics] = field(default_factory=dict)
    by_sender: dict[str, SenderStatistics] = field(default_factory=dict)
    by_topic: dict[str, TopicStatistics] = field(default_factory=dict)


class IntentMonitoringManager:
    """Runs topic subscriptions and reports on what they have received."""

    def __init__(
        self,
        config_manager: ConfigManager,
        subscription_manager: TopicSubscriptionManager,
    ) -> None:
        self._config_manager = config_manager
        self._subscriptions = subscription_manager
        self._running = False

    def start(self) -> None:
        """Start the subscription manager; does nothing if already running."""
        if self._running:
            return
        self._subscriptions.start()
        self._running = True

    def stop(self) -> None:
        """Stop the subscription manager; does nothing if not running."""
        if not self._running:
            return
        self._subscriptions.stop()
        self._running = False

    def is_running(self) -> bool:
        """Tell whether the manager has been started."""
        return self._running

    def update_config(self, config: IntentMonitoring) -> None:
        """Store ``config`` and resubscribe according to it."""
        self._config_manager.set_config(config)
        self._subscriptions.update_config(config)

    def subscription_status(self) -> SubscriptionStatus:
        """Return the active subscriptions with per-topic and total counts."""
        topics = self._subscriptions.subscriptions()
        stats = self._subscriptions.all_topic_stats()
        return SubscriptionStatus(
            mode=self._config_manager.get_config().subscription_mode,
            active_subscriptions=topics,
            topic_stats=stats,
            total_messages=sum(s.message_count for s in stats.values()),
            total_errors=sum(s.error_count for s in stats.values()),
        )

    def statistics(self) -> MonitoringStatistics:
        """Return monitoring statistics built from the per-topic figures."""
        stats = self._subscriptions.all_topic_stats()
        return MonitoringStatistics(
            total_received=sum(s.message_count for s in stats.values()),
            by_topic=dict(stats),
        )