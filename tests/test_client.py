import json

import httpx
import pytest
import respx

from a2a_hitl.client import A2AHttpClient
from a2a_hitl.exceptions import A2AClientError, A2AConnectionError
from a2a_hitl.models import TaskState

BASE_URL = "http://a2a.test/api/a2a"


@pytest.mark.asyncio
@respx.mock
async def test_update_status_posts_wire_payload():
    route = respx.post(f"{BASE_URL}/tasks/t1/status", params={"contextId": "c1"}).mock(
        return_value=httpx.Response(200, json={"success": True})
    )
    async with A2AHttpClient(BASE_URL, token="secret") as client:
        await client.update_status("t1", "c1", {"state": "input-required"})

    assert route.called
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"state": "input-required"}


@pytest.mark.asyncio
@respx.mock
async def test_update_message_and_artifact():
    messages = respx.post(f"{BASE_URL}/tasks/t1/messages").mock(return_value=httpx.Response(200, json={"success": True}))
    artifacts = respx.post(f"{BASE_URL}/tasks/t1/artifacts").mock(return_value=httpx.Response(200, json={"success": True}))
    async with A2AHttpClient(BASE_URL) as client:
        await client.update_message("t1", "c1", {"messageId": "m1", "role": "agent", "parts": [{"kind": "text", "text": "hi"}]})
        await client.update_artifact("t1", "c1", {"artifactId": "a1", "parts": [{"kind": "data", "data": {"x": 1}}]})

    assert json.loads(messages.calls.last.request.content)["messageId"] == "m1"
    assert json.loads(artifacts.calls.last.request.content)["artifactId"] == "a1"
    assert "Authorization" not in messages.calls.last.request.headers


@pytest.mark.asyncio
@respx.mock
async def test_get_task():
    respx.get(f"{BASE_URL}/tasks/t1").mock(return_value=httpx.Response(200, json={
        "id": "t1", "contextId": "c1", "kind": "task", "status": {"state": "working"},
    }))
    respx.get(f"{BASE_URL}/tasks/missing").mock(return_value=httpx.Response(404, json={"error": "Task not found"}))
    async with A2AHttpClient(BASE_URL) as client:
        task = await client.get_task("t1")
        assert task.status.state == TaskState.WORKING
        assert await client.get_task("missing") is None


@pytest.mark.asyncio
@respx.mock
async def test_error_status_raises_client_error():
    respx.post(f"{BASE_URL}/tasks/t1/status").mock(return_value=httpx.Response(400, json={"error": "contextId is required"}))
    async with A2AHttpClient(BASE_URL) as client:
        with pytest.raises(A2AClientError) as exc_info:
            await client.update_status("t1", "c1", {"state": "working"})
    assert exc_info.value.status_code == 400
    assert exc_info.value.response_body == {"error": "contextId is required"}


@pytest.mark.asyncio
@respx.mock
async def test_connection_failure_raises_connection_error():
    respx.get(f"{BASE_URL}/tasks/t1").mock(side_effect=httpx.ConnectError("refused"))
    async with A2AHttpClient(BASE_URL) as client:
        with pytest.raises(A2AConnectionError):
            await client.get_task("t1")


@pytest.mark.asyncio
async def test_external_client_is_not_closed():
    external = httpx.AsyncClient()
    client = A2AHttpClient(BASE_URL, http_client=external)
    await client.close()
    assert not external.is_closed
    await external.aclose()


@pytest.mark.asyncio
async def test_cancel_is_not_available():
    async with A2AHttpClient(BASE_URL) as client:
        with pytest.raises(NotImplementedError):
            await client.cancel_task("t1", "c1")
