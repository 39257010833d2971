from fastapi.testclient import TestClient

from a2a_hitl.config import Settings
from a2a_hitl.events import InMemoryEventChannel
from a2a_hitl.main import create_app
from a2a_hitl.storage import InMemoryStorageAdapter

from .test_core import echo_executor


def _settings(**overrides) -> Settings:
    values = {"DATABASE_URL": None, "REDIS_ENABLE_SSE": False}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_health_lists_executors():
    app = create_app(_settings(), executors=[echo_executor])
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "executors": ["urn:test:echo"]}


def test_router_mounted_at_prefix():
    app = create_app(_settings(A2A_PREFIX="/rpc"), executors=[echo_executor])
    with TestClient(app) as client:
        body = client.post("/rpc/", json={
            "jsonrpc": "2.0",
            "id": 7,
            "method": "message/send",
            "params": {
                "message": {"messageId": "m1", "role": "user", "parts": [{"kind": "text", "text": "hi"}], "extensions": ["urn:test:echo"]},
                "context": {"taskId": "t1", "contextId": "c1"},
            },
        }).json()
    assert body["result"]["task"]["id"] == "t1"
    assert body["result"]["streamUrl"].startswith("http://testserver/rpc/events?")


def test_uses_injected_backends():
    storage = InMemoryStorageAdapter()
    channel = InMemoryEventChannel()
    app = create_app(_settings(), storage=storage, event_channel=channel)
    assert app.state.a2a.storage is storage
    assert app.state.a2a.event_channel is channel


def test_sqlite_tables_created_on_startup(tmp_path):
    app = create_app(_settings(DATABASE_URL=f"sqlite:///{tmp_path / 'app.db'}"), executors=[echo_executor])
    with TestClient(app) as client:
        response = client.post("/api/a2a/", json={"jsonrpc": "2.0", "id": 1, "method": "tasks/get", "params": {"taskId": "none"}})
    assert response.json()["error"]["code"] == -32001
