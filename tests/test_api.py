"""
Tests for the FastAPI endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect


TEMPLATE_ID = "content-marketing-automation"


def failing_graph():
    """input -> scrape (no url) -> llm -> output"""
    return {
        "nodes": [
            {"id": "input", "type": "data-input", "data": {"label": "Input"}},
            {"id": "scrape", "type": "web-scraping", "data": {"label": "Scrape"}},
            {"id": "llm", "type": "llm-task", "data": {"config": {"prompt": "Summarize"}}},
            {"id": "output", "type": "data-output"},
        ],
        "edges": [
            {"id": "e1", "source": "input", "target": "scrape"},
            {"id": "e2", "source": "scrape", "target": "llm"},
            {"id": "e3", "source": "llm", "target": "output"},
        ],
    }


class TestRootEndpoints:
    """Tests for root endpoints."""

    def test_root(self, client: TestClient):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["name"] == "NodeFlow"
        assert "version" in data
        assert "endpoints" in data

    def test_health(self, client: TestClient):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["workflows_count"] == 6
        assert data["is_running"] is False


class TestNodeEndpoints:
    """Tests for node kind endpoints."""

    def test_list_node_kinds(self, client: TestClient):
        """Test listing node kinds."""
        response = client.get("/nodes/")
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 7
        kinds = [k["kind"] for k in data["node_kinds"]]
        assert "web-scraping" in kinds
        assert "similarity-search" in kinds

    def test_get_node_kind(self, client: TestClient):
        """Test getting one node kind with its config fields."""
        response = client.get("/nodes/llm-task")
        assert response.status_code == 200

        fields = {f["name"]: f for f in response.json()["config_fields"]}
        assert fields["prompt"]["required"] is True
        assert fields["maxTokens"]["default"] == 1000

    def test_get_unknown_node_kind(self, client: TestClient):
        """Test getting a kind that doesn't exist."""
        response = client.get("/nodes/teleporter")
        assert response.status_code == 404


class TestWorkflowEndpoints:
    """Tests for workflow endpoints."""

    def test_list_templates(self, client: TestClient):
        """Test that the templates are seeded at startup."""
        response = client.get("/workflows/")
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 6
        assert TEMPLATE_ID in [w["id"] for w in data["workflows"]]

    def test_get_template(self, client: TestClient):
        """Test getting a workflow with its diagram and order."""
        response = client.get(f"/workflows/{TEMPLATE_ID}")
        assert response.status_code == 200

        data = response.json()
        assert data["node_count"] == 5
        assert data["execution_order"][0] == "input-1"
        assert data["mermaid_diagram"].startswith("graph TD")
        assert data["nodes"][0]["type"] == "data-input"
        assert data["warnings"] == {}

    def test_get_missing_workflow(self, client: TestClient):
        """Test getting a workflow that doesn't exist."""
        response = client.get("/workflows/nope")
        assert response.status_code == 404

    def test_create_workflow(self, client: TestClient):
        """Test creating a workflow."""
        body = {"name": "Failing", "description": "Scraper without URL", **failing_graph()}

        response = client.post("/workflows/", json=body)
        assert response.status_code == 201

        data = response.json()
        assert data["name"] == "Failing"
        assert data["node_count"] == 4
        assert data["execution_order"] == ["input", "scrape", "llm", "output"]
        assert data["warnings"] == {"scrape": ["Missing required config: url"]}

    def test_create_cyclic_workflow(self, client: TestClient):
        """Test that cycles are rejected."""
        body = {
            "name": "Loop",
            "nodes": [{"id": "a", "type": "data-input"}, {"id": "b", "type": "data-output"}],
            "edges": [
                {"id": "e1", "source": "a", "target": "b"},
                {"id": "e2", "source": "b", "target": "a"},
            ],
        }

        response = client.post("/workflows/", json=body)
        assert response.status_code == 400
        assert "cycle" in response.json()["detail"]

    def test_create_empty_workflow(self, client: TestClient):
        """Test that empty workflows are rejected."""
        response = client.post("/workflows/", json={"name": "Empty", "nodes": []})
        assert response.status_code == 400

    def test_create_dangling_edge(self, client: TestClient):
        """Test that edges must reference existing nodes."""
        body = {
            "nodes": [{"id": "a", "type": "data-input"}],
            "edges": [{"id": "e1", "source": "a", "target": "ghost"}],
        }
        response = client.post("/workflows/", json=body)
        assert response.status_code == 400
        assert "ghost" in response.json()["detail"]

    def test_export_import(self, client: TestClient):
        """Test exporting and re-importing a workflow."""
        response = client.get(f"/workflows/{TEMPLATE_ID}/export")
        assert response.status_code == 200

        document = response.json()
        assert document["nodes"][1]["type"] == "web-scraping"
        assert "createdAt" in document

        document["id"] = "imported-copy"
        document["name"] = "Imported"
        response = client.post("/workflows/import", json=document)
        assert response.status_code == 201
        assert response.json()["id"] == "imported-copy"

        response = client.get("/workflows/imported-copy")
        assert response.status_code == 200
        assert response.json()["node_count"] == 5

    def test_import_malformed(self, client: TestClient):
        """Test importing a document with a broken node."""
        response = client.post("/workflows/import", json={"name": "Broken", "nodes": [{"type": "llm-task"}]})
        assert response.status_code == 400

    def test_delete_workflow(self, client: TestClient):
        """Test deleting a workflow."""
        response = client.delete(f"/workflows/{TEMPLATE_ID}")
        assert response.status_code == 204

        response = client.delete(f"/workflows/{TEMPLATE_ID}")
        assert response.status_code == 404


class TestRunEndpoints:
    """Tests for run endpoints."""

    def test_run_template(self, client: TestClient):
        """Test running a stored workflow end to end."""
        response = client.post(f"/workflows/{TEMPLATE_ID}/run", json={"input_data": "AI trends"})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "completed"
        assert data["workflow_id"] == TEMPLATE_ID
        assert [r["nodeId"] for r in data["results"]] == [
            "input-1", "web-scrape-1", "llm-1", "structured-1", "output-1",
        ]
        assert all(r["status"] == "success" for r in data["results"])
        assert all(isinstance(r["executionTime"], int) for r in data["results"])
        assert all(n["data"]["status"] == "success" for n in data["nodes"])

        run = client.get(f"/runs/{data['run_id']}")
        assert run.status_code == 200
        assert run.json()["status"] == "completed"

    def test_run_missing_workflow(self, client: TestClient):
        """Test running a workflow that doesn't exist."""
        response = client.post("/workflows/nope/run", json={})
        assert response.status_code == 404

    def test_run_inline_graph_failure(self, client: TestClient):
        """Test that a failing node is reported, not raised."""
        response = client.post("/runs/", json={**failing_graph(), "input_data": "hello"})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "failed"
        assert [(r["nodeId"], r["status"]) for r in data["results"]] == [
            ("input", "success"),
            ("scrape", "error"),
        ]
        assert data["error"] == "URL is required for web scraping"
        assert [n["data"]["status"] for n in data["nodes"]] == ["success", "error", "idle", "idle"]

    def test_run_inline_cycle(self, client: TestClient):
        """Test that an invalid inline graph is rejected."""
        body = {
            "nodes": [{"id": "a", "type": "data-input"}],
            "edges": [{"id": "e1", "source": "a", "target": "a"}],
        }
        response = client.post("/runs/", json=body)
        assert response.status_code == 400

    def test_list_runs(self, client: TestClient):
        """Test listing runs, filtered by workflow."""
        client.post(f"/workflows/{TEMPLATE_ID}/run", json={"input_data": "x"})
        client.post("/runs/", json={**failing_graph(), "input_data": "x"})

        assert client.get("/runs/").json()["total"] == 2

        filtered = client.get("/runs/", params={"workflow_id": TEMPLATE_ID}).json()
        assert filtered["total"] == 1
        assert filtered["runs"][0]["workflow_id"] == TEMPLATE_ID

    def test_get_missing_run(self, client: TestClient):
        """Test getting a run that doesn't exist."""
        response = client.get("/runs/nope")
        assert response.status_code == 404

    def test_status_and_stop_when_idle(self, client: TestClient):
        """Test engine status and stop without a run in flight."""
        assert client.get("/runs/status").json() == {"is_running": False}

        response = client.post("/runs/stop")
        assert response.status_code == 200
        assert response.json()["stopped"] is False


class TestWebSocket:
    """Tests for the streaming run endpoint."""

    def test_stream_run(self, client: TestClient):
        """Test node events streamed during a run."""
        with client.websocket_connect(f"/ws/run/{TEMPLATE_ID}") as websocket:
            websocket.send_json({"action": "start", "input_data": "AI trends"})

            started = websocket.receive_json()
            assert started["type"] == "started"

            messages = []
            while True:
                message = websocket.receive_json()
                messages.append(message)
                if message["type"] in ("completed", "failed", "cancelled", "error"):
                    break

        assert messages[-1]["type"] == "completed"
        assert messages[-1]["status"] == "completed"
        assert messages[-1]["run_id"] == started["run_id"]

        finished = [m for m in messages if m["type"] == "node_finished"]
        assert [m["node_id"] for m in finished] == [
            "input-1", "web-scrape-1", "llm-1", "structured-1", "output-1",
        ]
        assert messages[0] == {
            "type": "node_started",
            "run_id": started["run_id"],
            "node_id": "input-1",
            "status": "running",
            "result": None,
        }

    def test_stream_failed_run(self, client: TestClient):
        """Test that a failing run ends with a `failed` message."""
        workflow_id = client.post("/workflows/", json={"name": "Failing", **failing_graph()}).json()["id"]

        with client.websocket_connect(f"/ws/run/{workflow_id}") as websocket:
            websocket.send_json({"action": "start", "input_data": "hello"})
            assert websocket.receive_json()["type"] == "started"

            messages = []
            while True:
                message = websocket.receive_json()
                messages.append(message)
                if message["type"] in ("completed", "failed", "cancelled", "error"):
                    break

        final = messages[-1]
        assert final["type"] == "failed"
        assert final["status"] == "failed"
        assert final["workflow_id"] == workflow_id
        assert final["error"] == "URL is required for web scraping"
        assert [r["nodeId"] for r in final["results"]] == ["input", "scrape"]

        run = client.get(f"/runs/{final['run_id']}").json()
        assert run["status"] == "failed"

    def test_wrong_action(self, client: TestClient):
        """Test that only 'start' is accepted."""
        with client.websocket_connect(f"/ws/run/{TEMPLATE_ID}") as websocket:
            websocket.send_json({"action": "pause"})
            message = websocket.receive_json()

        assert message["type"] == "error"

    def test_missing_workflow(self, client: TestClient):
        """Test connecting for a workflow that doesn't exist."""
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/run/nope"):
                pass
