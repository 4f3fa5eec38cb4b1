"""
Tests for the FastAPI server: REST endpoints and the WebSocket channel.
"""

import pytest
from fastapi.testclient import TestClient

from calcnotes import api_server


@pytest.fixture
def client():
    manager = api_server.manager
    manager.notebooks.clear()
    manager.engines.clear()
    manager.storage_path = None
    manager.view_mode = "tabs"
    return TestClient(api_server.app)


def _create(client, **payload):
    response = client.post("/api/notebooks", json=payload)
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_stateless_reprocess(client):
    response = client.post("/api/reprocess", json={"text": "x = 10\nx * 2\n2 + 2 = 5"})
    data = response.json()

    assert response.status_code == 200
    assert data["updated_text"] == "x = 10\nx * 2\n2 + 2 = 4"
    assert data["variables"] == {"x": 10}
    assert data["results"] == [
        {"line_index": 0, "result": 10, "expression": "x = 10"},
        {"line_index": 1, "result": 20, "expression": "x * 2"},
        {"line_index": 2, "result": 4, "expression": "2 + 2"},
    ]
    assert data["preview"] is None
    assert api_server.manager.list_notebooks() == []


def test_notebook_crud(client):
    created = _create(client, name="Groceries", content="3 * 4")
    notebook_id = created["id"]

    assert created["name"] == "Groceries"
    assert created["content"] == "3 * 4"
    assert [n["id"] for n in client.get("/api/notebooks").json()] == [notebook_id]
    assert client.get(f"/api/notebooks/{notebook_id}").json()["name"] == "Groceries"

    patched = client.patch(f"/api/notebooks/{notebook_id}", json={
        "name": "Shopping",
        "position": {"x": 1, "y": 2},
        "size": {"width": 300, "height": 200},
    }).json()
    assert patched["name"] == "Shopping"
    assert patched["position"] == {"x": 1, "y": 2}
    assert patched["size"] == {"width": 300, "height": 200}

    deleted = client.delete(f"/api/notebooks/{notebook_id}").json()
    assert deleted["status"] == "success"
    assert len(deleted["notebooks"]) == 1
    assert deleted["notebooks"][0]["id"] != notebook_id


def test_unknown_notebook_is_404(client):
    assert client.get("/api/notebooks/nope").status_code == 404
    assert client.patch("/api/notebooks/nope", json={"name": "x"}).status_code == 404
    assert client.delete("/api/notebooks/nope").status_code == 404
    assert client.put("/api/notebooks/nope/content", json={"content": ""}).status_code == 404
    assert client.post("/api/notebooks/nope/commit", json={"content": "", "cursor": 0}).status_code == 404


def test_content_update_with_preview(client):
    notebook_id = _create(client)["id"]
    text = "rate = 20\nrate * 8"

    data = client.put(f"/api/notebooks/{notebook_id}/content",
                      json={"content": text, "cursor": len(text)}).json()

    assert data["updated_text"] == text
    assert data["preview"] == {"line": 1, "result": 160}
    assert client.get(f"/api/notebooks/{notebook_id}").json()["content"] == text

    preview = client.post(f"/api/notebooks/{notebook_id}/preview",
                          json={"content": text, "cursor": 0}).json()
    assert preview is None


def test_content_preview_follows_stored_text(client):
    notebook_id = _create(client)["id"]
    text = "2 * 2 = 1000\n3 * 3"

    # The caret offset lands on the second line once the first is rewritten
    data = client.put(f"/api/notebooks/{notebook_id}/content",
                      json={"content": text, "cursor": 12}).json()

    assert data["updated_text"] == "2 * 2 = 4\n3 * 3"
    assert data["preview"] == {"line": 1, "result": 9}


def test_commit_endpoint(client):
    notebook_id = _create(client)["id"]

    data = client.post(f"/api/notebooks/{notebook_id}/commit",
                       json={"content": "12 / 4", "cursor": 6}).json()
    assert data["committed"] is True
    assert data["text"] == "12 / 4 = 3\n"
    assert data["cursor"] == 11
    assert data["results"] == [{"line_index": 0, "result": 3, "expression": "12 / 4"}]

    refused = client.post(f"/api/notebooks/{notebook_id}/commit",
                          json={"content": "hello", "cursor": 5}).json()
    assert refused == {"committed": False, "text": "hello", "cursor": 5, "results": [], "variables": {}}


def test_export_and_import(client, tmp_path):
    notebook_id = _create(client, name="Trip", content="1 + 1")["id"]
    path = str(tmp_path / "trip.json")

    assert client.post(f"/api/notebooks/{notebook_id}/export", json={"path": path}).status_code == 200
    imported = client.post("/api/notebooks/import", json={"path": path})
    assert imported.status_code == 201
    assert imported.json()["name"] == "Trip"

    missing = client.post("/api/notebooks/import", json={"path": str(tmp_path / "missing.json")})
    assert missing.status_code == 400


def test_view_mode(client):
    assert client.get("/api/settings/view-mode").json() == {"view_mode": "tabs"}
    assert client.put("/api/settings/view-mode", json={"view_mode": "desktop"}).json() == {"view_mode": "desktop"}
    assert client.put("/api/settings/view-mode", json={"view_mode": "grid"}).status_code == 422


def test_syntax_highlight(client):
    data = client.post("/api/syntax-highlight", json={"text": "// note"}).json()

    assert data["highlights"][0]["class"] == "syntax-comment"


def test_websocket_messages(client):
    notebook_id = _create(client)["id"]

    with client.websocket_connect("/ws") as websocket:
        websocket.send_json({"type": "reprocess", "notebook_id": notebook_id,
                             "content": "5 + 5", "cursor": 5})
        reply = websocket.receive_json()
        assert reply["type"] == "reprocess_result"
        assert reply["preview"] == {"line": 0, "result": 10}

        websocket.send_json({"type": "commit", "notebook_id": notebook_id, "content": "5 + 5", "cursor": 5})
        reply = websocket.receive_json()
        assert reply["type"] == "commit_result"
        assert reply["text"] == "5 + 5 = 10\n"

        text = "5 + 5 = 10\nans * 2"
        websocket.send_json({"type": "preview", "notebook_id": notebook_id, "content": text, "cursor": len(text)})
        reply = websocket.receive_json()
        assert reply["type"] == "preview_result"
        assert reply["preview"] == {"line": 1, "result": 20}

        websocket.send_json({"type": "highlight", "text": "$1"})
        assert websocket.receive_json()["type"] == "highlight_result"


def test_websocket_errors_keep_socket_open(client):
    notebook_id = _create(client)["id"]

    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("not json")
        assert websocket.receive_json() == {"type": "error", "error": "Invalid JSON"}

        websocket.send_json({"type": "dance"})
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "reprocess", "notebook_id": "missing", "content": ""})
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "commit", "notebook_id": notebook_id, "content": "1+1"})
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "reprocess", "notebook_id": notebook_id, "content": "2 * 3"})
        assert websocket.receive_json()["type"] == "reprocess_result"
