"""Network topology: known peers, their connections and summary statistics."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

_TRACK_INTERVAL = 60.0
_INACTIVE_AFTER = timedelta(minutes=5)
_FORGET_AFTER = timedelta(minutes=30)


@dataclass
class NodeInfo:
    """What is known about one peer."""

    peer_id: str
    connected_at: datetime
    last_seen: datetime
    is_active: bool = True
    connections: list[str] = field(default_factory=list)


@dataclass
class NetworkTopology:
    """A copy of the topology: nodes, adjacency lists and statistics."""

    nodes: list[str] = field(default_factory=list)
    edges: dict[str, list[str]] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)


class Topology:
    """Thread-safe record of peers and the undirected connections between them."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._nodes: dict[str, NodeInfo] = {}
        self._edges: dict[str, list[str]] = {}
        self._stats: dict[str, Any] = {}
        self._last_updated = datetime.now()
        self._stop = threading.Event()

    def snapshot(self) -> NetworkTopology:
        """Return a copy of the current topology."""
        with self._lock:
            return NetworkTopology(
                nodes=list(self._nodes),
                edges={key: list(value) for key, value in self._edges.items()},
                stats=dict(self._stats),
            )

    @staticmethod
    def _new_node(peer_id: str) -> NodeInfo:
        now = datetime.now()
        return NodeInfo(peer_id=peer_id, connected_at=now, last_seen=now)

    def add_peer(self, peer_id: str) -> None:
        """Add ``peer_id`` if it is not known yet."""
        with self._lock:
            if peer_id in self._nodes:
                return
            self._nodes[peer_id] = self._new_node(peer_id)
            self._last_updated = datetime.now()
            self._update_stats()

    def remove_peer(self, peer_id: str) -> None:
        """Forget ``peer_id`` and every connection involving it."""
        with self._lock:
            if peer_id not in self._nodes:
                return
            del self._nodes[peer_id]
            self._edges.pop(peer_id, None)
            for key, connections in self._edges.items():
                self._edges[key] = [conn for conn in connections if conn != peer_id]
            self._last_updated = datetime.now()
            self._update_stats()

    def add_connection(self, peer1: str, peer2: str) -> None:
        """Connect two peers in both directions, adding them if unknown."""
        with self._lock:
            self._nodes.setdefault(peer1, self._new_node(peer1))
            self._nodes.setdefault(peer2, self._new_node(peer2))

            first = self._edges.setdefault(peer1, [])
            if peer2 in first:
                return
            first.append(peer2)

            second = self._edges.setdefault(peer2, [])
            if peer1 in second:
                return
            second.append(peer1)

            self._last_updated = datetime.now()
            self._update_stats()

    def remove_connection(self, peer1: str, peer2: str) -> None:
        """Remove the connection between two peers in both directions."""
        with self._lock:
            if peer1 in self._edges:
                self._edges[peer1] = [conn for conn in self._edges[peer1] if conn != peer2]
            if peer2 in self._edges:
                self._edges[peer2] = [conn for conn in self._edges[peer2] if conn != peer1]
            self._last_updated = datetime.now()
            self._update_stats()

    def _edge_count(self) -> int:
        return sum(len(connections) for connections in self._edges.values()) // 2

    def _update_stats(self) -> None:
        total_nodes = len(self._nodes)
        total_edges = self._edge_count()
        avg_connections = total_edges * 2 / total_nodes if total_nodes > 0 else 0.0
        self._stats = {
            "total_nodes": total_nodes,
            "total_edges": total_edges,
            "avg_connections": avg_connections,
            "last_updated": self._last_updated,
            "density": self._density(),
            "clustering_coeff": 0.0,
        }

    def _density(self) -> float:
        total_nodes = len(self._nodes)
        if total_nodes < 2:
            return 0.0
        max_edges = total_nodes * (total_nodes - 1) // 2
        return self._edge_count() / max_edges

    def node_info(self, peer_id: str) -> NodeInfo | None:
        """Return a copy of what is known about ``peer_id``, or None."""
        with self._lock:
            info = self._nodes.get(peer_id)
            if info is None:
                return None
            return NodeInfo(
                peer_id=info.peer_id,
                connected_at=info.connected_at,
                last_seen=info.last_seen,
                is_active=info.is_active,
                connections=list(info.connections),
            )

    def connected_peers(self, peer_id: str) -> list[str]:
        """Return the peers connected to ``peer_id``."""
        with self._lock:
            return list(self._edges.get(peer_id, []))

    def refresh(self) -> None:
        """Mark peers unseen for 5 minutes inactive and forget those unseen for 30."""
        with self._lock:
            now = datetime.now()
            for peer_id, info in list(self._nodes.items()):
                age = now - info.last_seen
                if age > _INACTIVE_AFTER:
                    info.is_active = False
                if age > _FORGET_AFTER:
                    del self._nodes[peer_id]
                    self._edges.pop(peer_id, None)
            self._update_stats()

    def start_tracking(self) -> threading.Thread:
        """Refresh the topology every minute in a background thread and return it."""
        thread = threading.Thread(target=self._track, name="topology-tracking", daemon=True)
        thread.start()
        return thread

    def _track(self) -> None:
        while not self._stop.wait(_TRACK_INTERVAL):
            self.refresh()

    def stop_tracking(self) -> None:
        """Stop the background refresh."""
        self._stop.set()