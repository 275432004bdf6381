"""
HTTP API Tests

Runs the FastAPI app against an in-memory remote store.
"""
import pytest
from fastapi.testclient import TestClient

from mindmap import InMemoryStore, MindMapStore, RemoteUnavailableError
from mindmap.backend import main

from .conftest import FailingStore


@pytest.fixture
def session(monkeypatch):
    session = MindMapStore(InMemoryStore())
    monkeypatch.setattr(main, "store", session)
    return session


@pytest.fixture
def client(session):
    with TestClient(main.app) as client:
        yield client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_get_diagram(client):
    data = client.get("/api/diagram").json()
    assert data["current_diagram_id"] is None
    assert [n["id"] for n in data["diagram"]["nodes"]] == ["root"]


def test_add_child_rename_and_move(client, session):
    response = client.post("/api/nodes/root/children", json={"position": {"x": 100, "y": 0}})
    assert response.status_code == 200
    node_id = response.json()["node"]["id"]
    assert response.json()["edge"]["sourceId"] == "root"

    response = client.patch(f"/api/nodes/{node_id}", json={"label": "Goals"})
    assert response.json()["node"]["label"] == "Goals"

    response = client.post("/api/changes", json=[
        {"type": "position", "id": node_id, "position": {"x": 5, "y": 6}},
        {"type": "select", "id": node_id, "selected": True},
    ])
    assert response.json() == {"success": True, "applied": 1}
    assert session.graph.get_node(node_id).position.x == 5


def test_add_child_to_missing_parent(client):
    response = client.post("/api/nodes/nope/children", json={"position": {"x": 1, "y": 1}})
    assert response.status_code == 404


def test_malformed_changes(client):
    response = client.post("/api/changes", json=[{"type": "position"}])
    assert response.status_code == 422


def test_delete_node_without_and_with_cascade(client, session):
    a = client.post("/api/nodes/root/children", json={"position": {"x": 1, "y": 1}}).json()["node"]["id"]
    b = client.post(f"/api/nodes/{a}/children", json={"position": {"x": 2, "y": 2}}).json()["node"]["id"]
    c = client.post("/api/nodes/root/children", json={"position": {"x": 3, "y": 3}}).json()["node"]["id"]

    response = client.delete(f"/api/nodes/{c}")
    assert response.json()["removed"] == [c]
    assert len(session.graph.edges) == 3

    response = client.delete(f"/api/nodes/{a}", params={"cascade": "true"})
    assert set(response.json()["removed"]) >= {a, b}
    assert [n.id for n in session.graph.nodes] == ["root"]


def test_delete_root_with_cascade(client):
    assert client.delete("/api/nodes/root", params={"cascade": "true"}).status_code == 400
    assert client.delete("/api/nodes/missing").status_code == 404


def test_save_new_load_and_list(client):
    response = client.post("/api/diagram/save", json={"name": "Ideas"})
    assert response.status_code == 200
    diagram_id = response.json()["diagram_id"]

    client.post("/api/nodes/root/children", json={"position": {"x": 1, "y": 1}})
    assert client.post("/api/diagram/save", json={}).json()["diagram_id"] == diagram_id

    new_state = client.post("/api/diagram/new").json()
    assert new_state["current_diagram_id"] is None
    assert new_state["diagram"]["nodes"][0]["label"] == "New Mind Map"

    loaded = client.post("/api/diagram/load", json={"diagram_id": diagram_id}).json()
    assert loaded["current_diagram_id"] == diagram_id
    assert len(loaded["diagram"]["nodes"]) == 2

    listing = client.get("/api/diagrams").json()["diagrams"]
    assert listing == [{"id": diagram_id, "name": "My Mind Map", "display_name": "My Mind Map"}]


def test_load_missing_diagram(client):
    response = client.post("/api/diagram/load", json={"diagram_id": "nope"})
    assert response.status_code == 404


def test_save_when_remote_is_down(monkeypatch):
    monkeypatch.setattr(main, "store", MindMapStore(FailingStore(RemoteUnavailableError("offline"))))
    with TestClient(main.app) as client:
        assert client.post("/api/diagram/save", json={"name": "x"}).status_code == 502
        assert client.get("/api/diagrams").json() == {"success": True, "diagrams": []}


def test_gesture_creates_child(client, session):
    client.post("/api/gestures/start", json={"node_id": "root"})
    response = client.post("/api/gestures/end", json={
        "target": "pane",
        "pointer": {"x": 300, "y": 100},
        "pane_origin": {"x": 0, "y": 0},
        "parent_layout": {"positionAbsolute": {"x": 0, "y": 0}, "width": 100, "height": 40},
        "transform": {"x": 0, "y": 0, "zoom": 1},
    })
    data = response.json()
    assert data["outcome"] == "child_created"
    assert data["node"]["position"] == {"x": 350.0, "y": 120.0}
    assert len(session.graph.nodes) == 2


def test_gesture_without_layout_is_ignored(client, session):
    client.post("/api/gestures/start", json={"node_id": "root"})
    response = client.post("/api/gestures/end", json={"target": "pane", "pointer": {"x": 1, "y": 1}})
    assert response.json()["outcome"] == "ignored"
    assert len(session.graph.nodes) == 1


def test_validate_endpoint(client):
    client.post("/api/nodes/root/children", json={"position": {"x": 1, "y": 1}})
    data = client.get("/api/diagram/validate").json()
    assert data["summary"]["valid"] is True
    assert data["summary"]["warnings"] == 1


def test_websocket_notifies_on_change(client):
    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}

        client.post("/api/nodes/root/children", json={"position": {"x": 1, "y": 1}})
        message = websocket.receive_json()
        assert message == {"type": "mindmap_updated", "diagram_id": None}


def test_websocket_announces_save(client):
    with client.websocket_connect("/ws") as websocket:
        response = client.post("/api/diagram/save", json={"name": "Ideas"})
        diagram_id = response.json()["diagram_id"]

        events = [websocket.receive_json(), websocket.receive_json()]
        assert {e["type"] for e in events} == {"mindmap_updated", "mindmap_saved"}
        saved = next(e for e in events if e["type"] == "mindmap_saved")
        assert saved == {"type": "mindmap_saved", "diagram_id": diagram_id, "name": "Ideas"}
