from datetime import timedelta

from intentnet.status import NetworkStatus, StatusSnapshot


def test_new_status_is_unknown_and_empty():
    status = NetworkStatus()
    assert status.health_status == "unknown"
    assert status.connected_peers == 0
    assert status.messages_sent == 0
    assert status.messages_received == 0
    assert status.is_healthy() is False


def test_single_peer_is_poor():
    status = NetworkStatus()
    status.increment_connected_peers()
    assert status.connected_peers == 1
    assert status.health_status == "poor"
    assert status.is_healthy() is False


def test_three_peers_is_good_and_healthy():
    status = NetworkStatus()
    for _ in range(3):
        status.increment_connected_peers()
    assert status.health_status == "good"
    assert status.is_healthy() is True


def test_ten_peers_is_excellent():
    status = NetworkStatus()
    for _ in range(10):
        status.increment_connected_peers()
    assert status.health_status == "excellent"
    assert status.is_healthy() is True


def test_decrement_never_goes_negative_and_reports_disconnected():
    status = NetworkStatus()
    status.increment_connected_peers()
    status.decrement_connected_peers()
    status.decrement_connected_peers()
    assert status.connected_peers == 0
    assert status.health_status == "disconnected"


def test_message_counters():
    status = NetworkStatus()
    status.increment_messages_sent()
    status.increment_messages_sent()
    status.increment_messages_received()
    assert status.messages_sent == 2
    assert status.messages_received == 1
    assert status.message_rate() > 0


def test_message_rate_is_zero_without_messages():
    status = NetworkStatus()
    assert status.message_rate() == 0.0


def test_set_health_status():
    status = NetworkStatus()
    status.set_health_status("excellent")
    assert status.health_status == "excellent"
    assert status.is_healthy() is True


def test_reset_clears_counters():
    status = NetworkStatus()
    status.increment_connected_peers()
    status.increment_messages_sent()
    status.increment_messages_received()
    status.reset()
    assert status.connected_peers == 0
    assert status.messages_sent == 0
    assert status.messages_received == 0
    assert status.health_status == "unknown"


def test_snapshot_matches_counters():
    status = NetworkStatus()
    status.increment_connected_peers()
    status.increment_messages_received()
    snap = status.snapshot()
    assert isinstance(snap, StatusSnapshot)
    assert snap.connected_peers == status.connected_peers
    assert snap.messages_received == 1
    assert snap.messages_sent == 0
    assert snap.health_status == "poor"
    assert snap.uptime >= timedelta(0)
    assert snap.last_update == status.last_update


def test_uptime_grows():
    status = NetworkStatus()
    first = status.uptime()
    second = status.uptime()
    assert second >= first >= timedelta(0)


def test_monitoring_thread_stops():
    status = NetworkStatus()
    thread = status.start_monitoring()
    assert thread.is_alive()
    status.stop_monitoring()
    thread.join(timeout=2.0)
    assert not thread.is_alive()