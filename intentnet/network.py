"""Network manager: turns network events into status and topology updates."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from intentnet.status import NetworkStatus
from intentnet.topology import NetworkTopology, Topology

_log = logging.getLogger(__name__)


@dataclass
class ManagerConfig:
    """Settings of the network manager."""

    enable_topology_tracking: bool = False
    status_update_interval: int = 0
    max_peers: int = 0
    enable_metrics: bool = False


def default_manager_config() -> ManagerConfig:
    """Return the default network manager configuration."""
    return ManagerConfig(
        enable_topology_tracking=True,
        status_update_interval=30,
        max_peers=100,
        enable_metrics=True,
    )


@dataclass
class NetworkEvent:
    """Something that happened on the network, concerning one peer."""

    type: str
    peer_id: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class NetworkStatusResponse:
    """Summary of the network state as reported to callers."""

    peer_count: int = 0
    connected_peers: list[str] = field(default_factory=list)
    network_health: str = "unknown"
    topic_count: int = 0
    messages_sent: int = 0
    messages_received: int = 0
    metrics: dict[str, Any] = field(default_factory=dict)


class NetworkManager:
    """Tracks peers and message counts from network events."""

    def __init__(self, config: ManagerConfig | None = None) -> None:
        self.config = config if config is not None else default_manager_config()
        self.status = NetworkStatus()
        self._topology = Topology()
        self._lock = threading.RLock()

    def network_status(self) -> NetworkStatusResponse:
        """Return the network status; no peer host is attached, so it is empty."""
        with self._lock:
            return NetworkStatusResponse(
                peer_count=0,
                connected_peers=[],
                network_health="unknown",
                topic_count=0,
                messages_sent=0,
                messages_received=0,
                metrics={},
            )

    def connected_peers(self) -> list[str]:
        """Return the connected peers; no peer host is attached, so none."""
        return []

    def topology(self) -> NetworkTopology:
        """Return a copy of the current topology."""
        with self._lock:
            return self._topology.snapshot()

    def handle_network_event(self, event: NetworkEvent) -> None:
        """Apply ``event`` to the status counters and topology."""
        _log.info("Handling network event: %s for peer %s", event.type, event.peer_id)
        handler = {
            "peer_connected": self._peer_connected,
            "peer_disconnected": self._peer_disconnected,
            "message_received": self._message_received,
            "message_sent": self._message_sent,
        }.get(event.type)
        if handler is None:
            _log.warning("Unknown network event type: %s", event.type)
            return
        with self._lock:
            handler(event)

    def _peer_connected(self, event: NetworkEvent) -> None:
        self._topology.add_peer(event.peer_id)
        self.status.increment_connected_peers()
        _log.info("Peer connected: %s", event.peer_id)

    def _peer_disconnected(self, event: NetworkEvent) -> None:
        self._topology.remove_peer(event.peer_id)
        self.status.decrement_connected_peers()
        _log.info("Peer disconnected: %s", event.peer_id)

    def _message_received(self, event: NetworkEvent) -> None:
        self.status.increment_messages_received()

    def _message_sent(self, event: NetworkEvent) -> None:
        self.status.increment_messages_sent()

    def start(self) -> list[threading.Thread]:
        """Start the enabled background trackers and return their threads."""
        _log.info("Starting network manager")
        threads = []
        if self.config.enable_metrics:
            threads.append(self.status.start_monitoring())
        if self.config.enable_topology_tracking:
            threads.append(self._topology.start_tracking())
        return threads

    def stop(self) -> None:
        """Stop the background trackers."""
        _log.info("Stopping network manager")
        self.status.stop_monitoring()
        self._topology.stop_tracking()

    def metrics(self) -> dict[str, Any]:
        """Return peer, message, health and topology figures."""
        with self._lock:
            snapshot = self._topology.snapshot()
            return {
                "connected_peers": self.status.connected_peers,
                "messages_sent": self.status.messages_sent,
                "messages_received": self.status.messages_received,
                "network_health": self.status.health_status,
                "topology_nodes": len(snapshot.nodes),
                "topology_edges": len(snapshot.edges),
            }