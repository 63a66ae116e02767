"""HTTP API tests (FastAPI app over ASGITransport)."""

import pytest

WORKFLOW = {
    "id": "greet",
    "name": "Greeting",
    "variables": {"name": "World"},
    "steps": [
        {
            "id": "compose",
            "type": "transform",
            "config": {"transformType": "template", "template": "Hello {{name}}", "outputVariable": "greeting"},
        },
        {
            "id": "check",
            "type": "condition",
            "dependsOn": ["compose"],
            "config": {"variable": "greeting", "operator": "contains", "value": "Hello", "outputVariable": "ok"},
            "retryConfig": {"maxRetries": 1, "backoffMs": 10},
        },
    ],
}


class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_status(self, client, service):
        service.register_workflow(WORKFLOW)
        response = await client.get("/api/health/status")
        assert response.status_code == 200
        assert response.json()["engine"]["workflows"] == 1


class TestWorkflowRoutes:
    @pytest.mark.asyncio
    async def test_register_list_get(self, client):
        response = await client.post("/api/v1/workflows", json=WORKFLOW)
        assert response.status_code == 201
        body = response.json()
        assert body["steps"][1]["dependsOn"] == ["compose"]
        assert body["steps"][1]["retryConfig"] == {"maxRetries": 1, "backoffMs": 10.0}

        listed = (await client.get("/api/v1/workflows")).json()
        assert [wf["id"] for wf in listed] == ["greet"]

        fetched = await client.get("/api/v1/workflows/greet")
        assert fetched.json()["name"] == "Greeting"

    @pytest.mark.asyncio
    async def test_get_unknown_workflow(self, client):
        response = await client.get("/api/v1/workflows/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Workflow not found: missing"

    @pytest.mark.asyncio
    async def test_invalid_definition(self, client):
        response = await client.post("/api/v1/workflows", json={"id": "x", "steps": [{"id": "a"}]})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_non_object_trigger_rejected(self, client):
        response = await client.post(
            "/api/v1/workflows", json={"id": "x", "steps": [], "triggers": ["webhook"]}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_execute(self, client):
        await client.post("/api/v1/workflows", json=WORKFLOW)
        response = await client.post("/api/v1/workflows/greet/execute", json={"input": {"name": "Ann"}})

        assert response.status_code == 200
        execution = response.json()
        assert execution["status"] == "completed"
        assert execution["variables"]["greeting"] == "Hello Ann"
        assert execution["variables"]["ok"] is True
        assert execution["stepResults"]["check"]["attempts"] == 1

    @pytest.mark.asyncio
    async def test_execute_without_body(self, client):
        await client.post("/api/v1/workflows", json=WORKFLOW)
        response = await client.post("/api/v1/workflows/greet/execute")
        assert response.status_code == 200
        assert response.json()["variables"]["greeting"] == "Hello World"

    @pytest.mark.asyncio
    async def test_execute_unknown_workflow(self, client):
        response = await client.post("/api/v1/workflows/nope/execute", json={})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_generate_fallback(self, client, chat_client):
        chat_client.replies = ["not json"]
        response = await client.post("/api/v1/workflows/generate", json={"description": "do things"})
        assert response.status_code == 200
        assert response.json()["name"] == "Generated Workflow"


class TestExecutionRoutes:
    @pytest.mark.asyncio
    async def test_list_get_and_cancel(self, client):
        await client.post("/api/v1/workflows", json=WORKFLOW)
        execution = (await client.post("/api/v1/workflows/greet/execute", json={})).json()

        listed = (await client.get("/api/v1/executions", params={"workflow_id": "greet"})).json()
        assert [e["id"] for e in listed] == [execution["id"]]
        assert (await client.get("/api/v1/executions", params={"workflow_id": "other"})).json() == []

        fetched = await client.get(f"/api/v1/executions/{execution['id']}")
        assert fetched.json()["workflowId"] == "greet"

        cancelled = await client.post(f"/api/v1/executions/{execution['id']}/cancel")
        assert cancelled.status_code == 200
        assert cancelled.json() == {"executionId": execution["id"], "cancelled": False}

    @pytest.mark.asyncio
    async def test_unknown_execution(self, client):
        assert (await client.get("/api/v1/executions/exec_0_000000")).status_code == 404
        assert (await client.post("/api/v1/executions/exec_0_000000/cancel")).status_code == 404


class TestWebhookRoutes:
    @pytest.mark.asyncio
    async def test_register_and_call(self, client, transport):
        response = await client.post("/api/v1/webhooks/n8n", json={
            "url": "https://n8n.test/hook",
            "authentication": {"type": "api-key", "credentials": {"key": "k"}},
        })
        assert response.status_code == 201
        assert response.json()["authentication"] == {"type": "api-key"}

        listed = (await client.get("/api/v1/webhooks")).json()
        assert [w["name"] for w in listed] == ["n8n"]

        called = await client.post("/api/v1/webhooks/n8n/call", json={"data": {"x": 1}})
        assert called.status_code == 200
        assert called.json()["body"] == {"x": 1}
        assert transport.requests[-1].headers["X-API-Key"] == "k"

    @pytest.mark.asyncio
    async def test_call_unknown_webhook(self, client):
        response = await client.post("/api/v1/webhooks/ghost/call", json={})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bad_auth_type(self, client):
        response = await client.post("/api/v1/webhooks/x", json={
            "url": "https://x", "authentication": {"type": "oauth"},
        })
        assert response.status_code == 422


class TestStepTypes:
    @pytest.mark.asyncio
    async def test_list(self, client):
        response = await client.get("/api/v1/step-types")
        assert response.status_code == 200
        assert {t["task_type"] for t in response.json()} == {"agent", "http", "transform", "condition", "wait"}
