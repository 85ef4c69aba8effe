"""Network status counters and a derived health rating."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta

_MONITOR_INTERVAL = 30.0
_STALE_AFTER = timedelta(minutes=5)


@dataclass(frozen=True)
class StatusSnapshot:
    """A point-in-time copy of the network status."""

    connected_peers: int
    messages_sent: int
    messages_received: int
    health_status: str
    uptime: timedelta
    last_update: datetime


class NetworkStatus:
    """Thread-safe counters of peers and messages with a health rating."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._connected_peers = 0
        self._messages_sent = 0
        self._messages_received = 0
        self._started = time.monotonic()
        self._last_update = datetime.now()
        self._health_status = "unknown"
        self._stop = threading.Event()

    @property
    def connected_peers(self) -> int:
        with self._lock:
            return self._connected_peers

    @property
    def messages_sent(self) -> int:
        with self._lock:
            return self._messages_sent

    @property
    def messages_received(self) -> int:
        with self._lock:
            return self._messages_received

    @property
    def health_status(self) -> str:
        with self._lock:
            return self._health_status

    @property
    def last_update(self) -> datetime:
        with self._lock:
            return self._last_update

    def uptime(self) -> timedelta:
        """Return the time since the status was created or last reset."""
        with self._lock:
            return timedelta(seconds=time.monotonic() - self._started)

    def increment_connected_peers(self) -> None:
        """Count one more connected peer and rerate health."""
        with self._lock:
            self._connected_peers += 1
            self._last_update = datetime.now()
            self._update_health()

    def decrement_connected_peers(self) -> None:
        """Count one peer fewer, never below zero, and rerate health."""
        with self._lock:
            if self._connected_peers > 0:
                self._connected_peers -= 1
            self._last_update = datetime.now()
            self._update_health()

    def increment_messages_sent(self) -> None:
        """Count one sent message."""
        with self._lock:
            self._messages_sent += 1
            self._last_update = datetime.now()

    def increment_messages_received(self) -> None:
        """Count one received message."""
        with self._lock:
            self._messages_received += 1
            self._last_update = datetime.now()

    def _update_health(self) -> None:
        peers = self._connected_peers
        if peers == 0:
            self._health_status = "disconnected"
        elif peers < 3:
            self._health_status = "poor"
        elif peers < 10:
            self._health_status = "good"
        else:
            self._health_status = "excellent"
        if datetime.now() - self._last_update > _STALE_AFTER:
            self._health_status = "stale"

    def set_health_status(self, status: str) -> None:
        """Set the health status by hand."""
        with self._lock:
            self._health_status = status
            self._last_update = datetime.now()

    def reset(self) -> None:
        """Zero every counter and restart the uptime clock."""
        with self._lock:
            self._connected_peers = 0
            self._messages_sent = 0
            self._messages_received = 0
            self._started = time.monotonic()
            self._last_update = datetime.now()
            self._health_status = "unknown"

    def snapshot(self) -> StatusSnapshot:
        """Return a copy of the current status."""
        with self._lock:
            return StatusSnapshot(
                connected_peers=self._connected_peers,
                messages_sent=self._messages_sent,
                messages_received=self._messages_received,
                health_status=self._health_status,
                uptime=timedelta(seconds=time.monotonic() - self._started),
                last_update=self._last_update,
            )

    def is_healthy(self) -> bool:
        """Tell whether health is rated good or excellent."""
        with self._lock:
            return self._health_status in ("good", "excellent")

    def message_rate(self) -> float:
        """Return messages sent and received per second of uptime."""
        with self._lock:
            uptime = time.monotonic() - self._started
            if uptime <= 0:
                return 0.0
            return (self._messages_sent + self._messages_received) / uptime

    def start_monitoring(self) -> threading.Thread:
        """Start rerating health periodically in a background thread and return it."""
        thread = threading.Thread(target=self._monitor, name="network-status", daemon=True)
        thread.start()
        return thread

    def _monitor(self) -> None:
        while not self._stop.wait(_MONITOR_INTERVAL):
            with self._lock:
                self._update_health()

    def stop_monitoring(self) -> None:
        """Stop the background health monitoring."""
        self._stop.set()