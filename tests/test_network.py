import pytest

from intentnet.network import (
    ManagerConfig,
    NetworkEvent,
    NetworkManager,
    default_manager_config,
)


def connect(manager, *peers):
    for peer in peers:
        manager.handle_network_event(NetworkEvent(type="peer_connected", peer_id=peer))


def test_default_config_values():
    config = default_manager_config()
    assert config.enable_topology_tracking is True
    assert config.status_update_interval == 30
    assert config.max_peers == 100
    assert config.enable_metrics is True


def test_network_status_is_empty():
    manager = NetworkManager(default_manager_config())
    connect(manager, "peer-a")
    response = manager.network_status()
    assert response.network_health == "unknown"
    assert response.connected_peers == []
    assert response.peer_count == 0
    assert response.metrics == {}


def test_connected_peers_is_empty():
    manager = NetworkManager(default_manager_config())
    connect(manager, "peer-a")
    assert manager.connected_peers() == []


def test_peer_connected_updates_topology_and_status():
    manager = NetworkManager(default_manager_config())
    connect(manager, "peer-a", "peer-b")
    assert sorted(manager.topology().nodes) == ["peer-a", "peer-b"]
    metrics = manager.metrics()
    assert metrics["connected_peers"] == 2
    assert metrics["topology_nodes"] == 2
    assert metrics["network_health"] == "poor"


def test_health_rises_with_peers_and_falls_on_disconnect():
    manager = NetworkManager(default_manager_config())
    connect(manager, "p1", "p2", "p3")
    assert manager.metrics()["network_health"] == "good"
    manager.handle_network_event(NetworkEvent(type="peer_disconnected", peer_id="p3"))
    metrics = manager.metrics()
    assert metrics["network_health"] == "poor"
    assert "p3" not in manager.topology().nodes


def test_message_events_count():
    manager = NetworkManager(default_manager_config())
    manager.handle_network_event(NetworkEvent(type="message_sent"))
    manager.handle_network_event(NetworkEvent(type="message_received"))
    manager.handle_network_event(NetworkEvent(type="message_received"))
    metrics = manager.metrics()
    assert metrics["messages_sent"] == 1
    assert metrics["messages_received"] == 2


def test_unknown_event_changes_nothing():
    manager = NetworkManager(default_manager_config())
    before = manager.metrics()
    manager.handle_network_event(NetworkEvent(type="something_else", peer_id="x"))
    assert manager.metrics() == before


def test_metrics_keys():
    manager = NetworkManager(default_manager_config())
    assert set(manager.metrics()) == {
        "connected_peers",
        "messages_sent",
        "messages_received",
        "network_health",
        "topology_nodes",
        "topology_edges",
    }


@pytest.mark.parametrize(
    ("metrics", "tracking", "expected"),
    [(True, True, 2), (True, False, 1), (False, False, 0)],
)
def test_start_launches_enabled_trackers(metrics, tracking, expected):
    manager = NetworkManager(
        ManagerConfig(enable_metrics=metrics, enable_topology_tracking=tracking)
    )
    threads = manager.start()
    try:
        assert len(threads) == expected
    finally:
        manager.stop()


def test_stop_ends_tracker_threads():
    manager = NetworkManager(default_manager_config())
    threads = manager.start()
    manager.stop()
    for thread in threads:
        thread.join(timeout=2.0)
    assert not any(thread.is_alive() for thread in threads)