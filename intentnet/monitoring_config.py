"""Intent monitoring configuration: defaults, validation and topic selection."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta

_DEFAULT_WILDCARD = "intent-broadcast.*"
_VALID_MODES = ("wildcard", "explicit", "all", "disabled")
_DEFAULT_RETENTION = timedelta(hours=24)
_DEFAULT_AGGREGATION = timedelta(minutes=1)


class ConfigError(ValueError):
    """Raised for an invalid monitoring configuration."""


@dataclass
class MonitoringFilter:
    """Filter rules applied to monitored intents."""

    allowed_types: list[str] = field(default_factory=list)
    blocked_types: list[str] = field(default_factory=list)
    allowed_senders: list[str] = field(default_factory=list)
    blocked_senders: list[str] = field(default_factory=list)
    min_priority: int = 0
    max_priority: int = 0


@dataclass
class StatisticsConfig:
    """Statistics collection settings."""

    enabled: bool = False
    retention_period: timedelta | None = None
    aggregation_interval: timedelta | None = None


@dataclass
class PerformanceConfig:
    """Resource limits for monitoring."""

    max_subscriptions: int = 0
    message_buffer_size: int = 0
    batch_size: int = 0


@dataclass
class IntentMonitoring:
    """Intent monitoring configuration."""

    subscription_mode: str = ""
    explicit_topics: list[str] = field(default_factory=list)
    wildcard_patterns: list[str] = field(default_factory=list)
    filter: MonitoringFilter | None = None
    statistics: StatisticsConfig | None = None
    performance: PerformanceConfig | None = None


@dataclass
class TransportConfig:
    """Transport configuration holding the monitoring section."""

    intent_monitoring: IntentMonitoring | None = None


class ConfigManager:
    """Loads, validates and serves the intent monitoring configuration."""

    def __init__(self) -> None:
        self._config: IntentMonitoring | None = None

    def load_config(self, transport_config: TransportConfig | None) -> IntentMonitoring:
        """Validate the monitoring section of ``transport_config`` and keep it."""
        if transport_config is None or transport_config.intent_monitoring is None:
            return self.default_config()
        try:
            validated = self._validate_and_apply_defaults(transport_config.intent_monitoring)
        except ConfigError as exc:
            raise ConfigError(f"failed to validate intent monitoring config: {exc}") from exc
        self._config = validated
        return validated

    def get_config(self) -> IntentMonitoring:
        """Return the current configuration, or the default one if none is set."""
        if self._config is None:
            return self.default_config()
        return self._config

    def set_config(self, config: IntentMonitoring | None) -> None:
        """Replace the current configuration without validation."""
        self._config = config

    def _validate_and_apply_defaults(self, config: IntentMonitoring) -> IntentMonitoring:
        validated = replace(config)

        if not validated.subscription_mode:
            validated.subscription_mode = "all"

        if not self.is_valid_subscription_mode(validated.subscription_mode):
            raise ConfigError(f"invalid subscription mode: {validated.subscription_mode}")

        if validated.subscription_mode == "wildcard" and not validated.wildcard_patterns:
            validated.wildcard_patterns = [_DEFAULT_WILDCARD]

        if validated.subscription_mode == "explicit" and not validated.explicit_topics:
            validated.explicit_topics = self.default_explicit_topics()

        validated.filter = self.validate_filter(validated.filter)
        validated.statistics = self.validate_statistics(validated.statistics)
        validated.performance = self.validate_performance(validated.performance)
        return validated

    def default_config(self) -> IntentMonitoring:
        """Return a fresh default configuration."""
        return IntentMonitoring(
            subscription_mode="all",
            wildcard_patterns=[_DEFAULT_WILDCARD],
            explicit_topics=self.default_explicit_topics(),
            filter=self._default_filter(),
            statistics=self._default_statistics(),
            performance=self._default_performance(),
        )

    def default_explicit_topics(self) -> list[str]:
        """Return the default list of explicit topics."""
        return [
            "intent-broadcast.trade",
            "intent-broadcast.swap",
            "intent-broadcast.exchange",
            "intent-broadcast.transfer",
            "intent-broadcast.send",
            "intent-broadcast.payment",
            "intent-broadcast.lending",
            "intent-broadcast.borrow",
            "intent-broadcast.loan",
            "intent-broadcast.investment",
            "intent-broadcast.staking",
            "intent-broadcast.yield",
            "intent-broadcast.general",
        ]

    def all_known_topics(self) -> list[str]:
        """Return every known intent broadcast topic."""
        return self.default_explicit_topics() + [
            "intent-broadcast.matching",
            "intent-broadcast.notification",
            "intent-broadcast.status",
        ]

    @staticmethod
    def _default_filter() -> MonitoringFilter:
        return MonitoringFilter(min_priority=0, max_priority=10)

    @staticmethod
    def _default_statistics() -> StatisticsConfig:
        return StatisticsConfig(
            enabled=True,
            retention_period=_DEFAULT_RETENTION,
            aggregation_interval=_DEFAULT_AGGREGATION,
        )

    @staticmethod
    def _default_performance() -> PerformanceConfig:
        return PerformanceConfig(max_subscriptions=100, message_buffer_size=1000, batch_size=10)

    def is_valid_subscription_mode(self, mode: str) -> bool:
        """Tell whether ``mode`` is a known subscription mode."""
        return mode in _VALID_MODES

    def validate_filter(self, filter_config: MonitoringFilter | None) -> MonitoringFilter:
        """Apply priority defaults to a filter and put its bounds in order."""
        if filter_config is None:
            return self._default_filter()
        if filter_config.min_priority == 0 and filter_config.max_priority == 0:
            filter_config.max_priority = 10
        if filter_config.min_priority > filter_config.max_priority:
            filter_config.min_priority, filter_config.max_priority = (
                filter_config.max_priority,
                filter_config.min_priority,
            )
        return filter_config

    def validate_statistics(self, stats: StatisticsConfig | None) -> StatisticsConfig:
        """Fill in missing statistics durations."""
        if stats is None:
            return self._default_statistics()
        if stats.retention_period is None:
            stats.retention_period = _DEFAULT_RETENTION
        if stats.aggregation_interval is None:
            stats.aggregation_interval = _DEFAULT_AGGREGATION
        return stats

    def validate_performance(self, perf: PerformanceConfig | None) -> PerformanceConfig:
        """Replace unset or non-positive performance limits with defaults."""
        if perf is None:
            return self._default_performance()
        if perf.max_subscriptions <= 0:
            perf.max_subscriptions = 100
        if perf.message_buffer_size <= 0:
            perf.message_buffer_size = 1000
        if perf.batch_size <= 0:
            perf.batch_size = 10
        return perf

    def is_filter_enabled(self) -> bool:
        """Tell whether any explicit type or sender rule is set."""
        flt = self.get_config().filter
        if flt is None:
            return False
        return bool(
            flt.allowed_types or flt.blocked_types or flt.allowed_senders or flt.blocked_senders
        )

    def subscription_topics(self) -> list[str]:
        """Return the topics or patterns to subscribe to under the current mode."""
        config = self.get_config()
        mode = config.subscription_mode
        if mode == "disabled":
            return []
        if mode == "explicit":
            return list(config.explicit_topics) or self.default_explicit_topics()
        if mode == "wildcard":
            return list(config.wildcard_patterns) or [_DEFAULT_WILDCARD]
        if mode == "all":
            return self.all_known_topics()
        raise ConfigError(f"unknown subscription mode: {mode}")