"""Routing of intents to destinations through named strategies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from intentnet.types import Intent


class RoutingError(RuntimeError):
    """Raised when an intent cannot be routed."""


class RoutingStrategy(Protocol):
    """A way of choosing destinations for an intent."""

    name: str
    priority: int

    def route(self, intent: Intent) -> list[str]: ...


@dataclass
class RoutingConfig:
    """Routing engine settings."""

    default_strategy: str = ""
    enable_load_balancing: bool = False
    max_retries: int = 0
    fallback_enabled: bool = False


def default_routing_config() -> RoutingConfig:
    """Return the default routing configuration."""
    return RoutingConfig(
        default_strategy="type_based",
        enable_load_balancing=True,
        max_retries=3,
        fallback_enabled=True,
    )


class RoutingEngine:
    """Routes intents with a type-specific strategy or the default one."""

    def __init__(self, config: RoutingConfig) -> None:
        self.config = config
        self._strategies: dict[str, RoutingStrategy] = {}

    def route_intent(self, intent: Intent) -> list[str]:
        """Return the destinations for ``intent``."""
        try:
            strategy = self._strategy_for(intent.type)
        except RoutingError as exc:
            raise RoutingError(f"failed to get routing strategy: {exc}") from exc

        try:
            return strategy.route(intent)
        except Exception as exc:
            if self.config.fallback_enabled:
                return self._route_with_fallback(intent, exc)
            raise RoutingError(f"routing failed: {exc}") from exc

    def add_strategy(self, strategy: RoutingStrategy) -> None:
        """Register ``strategy`` under its name."""
        self._strategies[strategy.name] = strategy

    def remove_strategy(self, name: str) -> None:
        """Drop the strategy called ``name`` if present."""
        self._strategies.pop(name, None)

    def _strategy_for(self, intent_type: str) -> RoutingStrategy:
        strategy = self._strategies.get(intent_type)
        if strategy is not None:
            return strategy
        strategy = self._strategies.get(self.config.default_strategy)
        if strategy is not None:
            return strategy
        raise RoutingError(f"no routing strategy found for intent type: {intent_type}")

    def _route_with_fallback(self, intent: Intent, cause: Exception) -> list[str]:
        raise RoutingError(
            f"fallback routing failed for intent type {intent.type}: no fallback strategy available"
        ) from cause


class TypeBasedStrategy:
    """Routes an intent to every destination registered for its type."""

    def __init__(self) -> None:
        self.name = "type_based"
        self.priority = 100
        self._routes: dict[str, list[str]] = {}

    def route(self, intent: Intent) -> list[str]:
        """Return the destinations registered for the intent's type."""
        routes = self._routes.get(intent.type)
        if routes is None:
            raise RoutingError(f"no routes defined for intent type: {intent.type}")
        return list(routes)

    def add_route(self, intent_type: str, destinations: list[str]) -> None:
        """Set the destinations for ``intent_type``."""
        self._routes[intent_type] = list(destinations)

    def remove_route(self, intent_type: str) -> None:
        """Forget the destinations for ``intent_type``."""
        self._routes.pop(intent_type, None)


class LoadBalancingStrategy:
    """Routes each intent to one destination, round robin per type."""

    def __init__(self) -> None:
        self.name = "load_balancing"
        self.priority = 90
        self._routes: dict[str, list[str]] = {}
        self._counters: dict[str, int] = {}

    def route(self, intent: Intent) -> list[str]:
        """Return the next destination in turn for the intent's type."""
        routes = self._routes.get(intent.type)
        if not routes:
            raise RoutingError(f"no routes defined for intent type: {intent.type}")
        counter = self._counters.get(intent.type, 0)
        self._counters[intent.type] = counter + 1
        return [routes[counter % len(routes)]]

    def add_route(self, intent_type: str, destinations: list[str]) -> None:
        """Set the destinations to rotate through for ``intent_type``."""
        self._routes[intent_type] = list(destinations)