import re

import pytest
from fastapi.testclient import TestClient

from completion_gateway.routes import create_app
from completion_gateway.routing import FailureTracker
from completion_gateway.services import CompletionService, ConversationStore
from completion_gateway.upstream import UpstreamError


@pytest.fixture
def store(fake_clock):
    return ConversationStore(clock=fake_clock, timeout_seconds=60)


@pytest.fixture
def tracker():
    return FailureTracker()


@pytest.fixture
def upstream(make_upstream):
    return make_upstream()


@pytest.fixture
def client(store, tracker, upstream, candidate_table):
    service = CompletionService(
        store=store, tracker=tracker, client=upstream, configs=candidate_table
    )
    app = create_app(completion_service=service)
    with TestClient(app) as test_client:
        yield test_client


def test_generate_with_session_id(client, upstream):
    resp = client.post(
        "/v1/ai/generate",
        json={"message": "Hello", "session_id": "s1", "system_prompt": "Be concise"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["session_id"] == "s1"
    assert body["timestamp"]
    assert body["data"]["response"] == "reply from model-a"
    assert body["data"]["model_used"] == "model-a"
    assert body["data"]["message_count"] == 2
    assert body["data"]["conversation_stats"]["message_count"] == 3
    assert upstream.calls[0]["messages"][0] == {"role": "system", "content": "Be concise"}


def test_generate_assigns_session_id(client):
    resp = client.post("/v1/ai/generate", json={"message": "Hello"})

    assert resp.status_code == 200
    assert re.fullmatch(r"session_\d+_[a-z0-9]{9}", resp.json()["session_id"])


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"message": ""},
        {"message": "x" * 4001},
        {"message": "hi", "temperature": 2.5},
        {"message": "hi", "max_tokens": 0},
        {"message": "hi", "max_tokens": 2001},
    ],
)
def test_generate_validation(client, upstream, payload):
    resp = client.post("/v1/ai/generate", json=payload)

    assert resp.status_code == 422
    assert upstream.calls == []


def test_single_does_not_create_session(client, store, upstream):
    resp = client.post("/v1/ai/single", json={"message": "Hi", "temperature": 0.2})

    assert resp.status_code == 200
    assert resp.json()["data"]["response"] == "reply from model-a"
    assert upstream.calls[0]["max_tokens"] == 150
    assert upstream.calls[0]["temperature"] == 0.2
    assert store.active_count() == 0


def test_get_and_delete_conversation(client):
    client.post("/v1/ai/generate", json={"message": "Hello", "session_id": "s1"})

    resp = client.get("/v1/ai/conversation/s1")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["stats"]["session_id"] == "s1"
    assert data["messages"] == [
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "reply from model-a"},
    ]

    resp = client.delete("/v1/ai/conversation/s1")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Conversation s1 cleared"}

    resp = client.get("/v1/ai/conversation/s1")
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "not_found"


def test_health_reports_models_and_reaps_sessions(client, store, tracker, fake_clock):
    store.append_message("stale", "user", "x")
    fake_clock.advance(61)
    store.append_message("live", "user", "y")
    for _ in range(3):
        tracker.record_failure("model-c")

    resp = client.get("/v1/ai/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["cleaned_sessions"] == 1
    assert body["active_sessions"] == 1
    assert [(m["model"], m["status"]) for m in body["models"]] == [
        ("model-a", "available"),
        ("model-b", "available"),
        ("model-c", "rate_limited"),
    ]
    assert body["models"][0]["rate_limit"] == "100 req/min"


def test_no_model_available_maps_to_503(client, tracker):
    for model_id in ("model-a", "model-b", "model-c"):
        for _ in range(3):
            tracker.record_failure(model_id)

    resp = client.post("/v1/ai/single", json={"message": "Hi"})

    assert resp.status_code == 503
    detail = resp.json()["detail"]
    assert detail["error"] == "service_unavailable"
    assert detail["message"] == "All models are currently rate limited"
    assert detail["details"]["skipped_models"] == ["model-a", "model-b", "model-c"]


def test_all_models_rate_limited_maps_to_503_with_last_error(client, upstream, rate_limit_error):
    for model_id in ("model-a", "model-b", "model-c"):
        upstream.outcomes[model_id] = rate_limit_error(f"rate limit on {model_id}")

    resp = client.post("/v1/ai/generate", json={"message": "Hi", "session_id": "s1"})

    assert resp.status_code == 503
    detail = resp.json()["detail"]
    assert detail["details"]["last_error"] == "rate limit on model-c"


def test_fatal_upstream_error_maps_to_502(client, upstream):
    upstream.outcomes["model-a"] = UpstreamError(
        status_code=401, message="Authentication error", code="10000"
    )

    resp = client.post("/v1/ai/generate", json={"message": "Hi"})

    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["error"] == "bad_gateway"
    assert detail["message"] == "Authentication error"
    assert detail["details"] == {"status_code": 401, "code": "10000"}
    assert upstream.called_models == ["model-a"]
