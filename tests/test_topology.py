from datetime import datetime, timedelta

from intentnet.topology import NetworkTopology, Topology


def test_empty_topology():
    topo = Topology()
    snap = topo.snapshot()
    assert isinstance(snap, NetworkTopology)
    assert snap.nodes == []
    assert snap.edges == {}


def test_add_peer_once():
    topo = Topology()
    topo.add_peer("peer-a")
    topo.add_peer("peer-a")
    snap = topo.snapshot()
    assert snap.nodes == ["peer-a"]
    assert snap.stats["total_nodes"] == 1
    assert snap.stats["total_edges"] == 0
    assert snap.stats["density"] == 0.0


def test_add_connection_is_bidirectional():
    topo = Topology()
    topo.add_connection("peer-a", "peer-b")
    assert topo.connected_peers("peer-a") == ["peer-b"]
    assert topo.connected_peers("peer-b") == ["peer-a"]
    snap = topo.snapshot()
    assert set(snap.nodes) == {"peer-a", "peer-b"}
    assert snap.stats["total_edges"] == 1
    assert snap.stats["density"] == 1.0


def test_duplicate_connection_is_ignored():
    topo = Topology()
    topo.add_connection("peer-a", "peer-b")
    topo.add_connection("peer-a", "peer-b")
    topo.add_connection("peer-b", "peer-a")
    assert topo.connected_peers("peer-a") == ["peer-b"]
    assert topo.connected_peers("peer-b") == ["peer-a"]


def test_remove_connection():
    topo = Topology()
    topo.add_connection("peer-a", "peer-b")
    topo.add_connection("peer-a", "peer-c")
    topo.remove_connection("peer-a", "peer-b")
    assert topo.connected_peers("peer-a") == ["peer-c"]
    assert topo.connected_peers("peer-b") == []
    assert topo.snapshot().stats["total_edges"] == 1


def test_remove_peer_drops_its_edges():
    topo = Topology()
    topo.add_connection("peer-a", "peer-b")
    topo.add_connection("peer-b", "peer-c")
    topo.remove_peer("peer-b")
    snap = topo.snapshot()
    assert "peer-b" not in snap.nodes
    assert "peer-b" not in snap.edges
    assert all("peer-b" not in conns for conns in snap.edges.values())
    assert snap.stats["total_edges"] == 0


def test_snapshot_is_a_copy():
    topo = Topology()
    topo.add_connection("peer-a", "peer-b")
    snap = topo.snapshot()
    snap.edges["peer-a"].append("peer-z")
    snap.nodes.append("peer-z")
    assert topo.connected_peers("peer-a") == ["peer-b"]
    assert "peer-z" not in topo.snapshot().nodes


def test_node_info_copy_and_unknown():
    topo = Topology()
    topo.add_peer("peer-a")
    info = topo.node_info("peer-a")
    assert info.peer_id == "peer-a"
    assert info.is_active is True
    info.is_active = False
    assert topo.node_info("peer-a").is_active is True
    assert topo.node_info("missing") is None


def test_connected_peers_of_unknown_is_empty():
    assert Topology().connected_peers("missing") == []


def test_refresh_marks_inactive_and_forgets_old_peers():
    topo = Topology()
    topo.add_peer("recent")
    topo.add_peer("idle")
    topo.add_connection("old", "recent")
    now = datetime.now()
    topo._nodes["idle"].last_seen = now - timedelta(minutes=10)
    topo._nodes["old"].last_seen = now - timedelta(minutes=40)
    topo.refresh()
    assert topo.node_info("recent").is_active is True
    assert topo.node_info("idle").is_active is False
    assert topo.node_info("old") is None
    assert "old" not in topo.snapshot().edges


def test_tracking_thread_stops():
    topo = Topology()
    thread = topo.start_tracking()
    assert thread.is_alive()
    topo.stop_tracking()
    thread.join(timeout=2.0)
    assert not thread.is_alive()