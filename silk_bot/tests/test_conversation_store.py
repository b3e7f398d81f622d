from __future__ import annotations

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from silk_bot.client import AuthContext, HttpConversationStore
from silk_bot.conversation_store import ConversationStore, TokenResolver
from silk_bot.models import MessageRecord


@pytest.fixture()
def store(fake_redis, testing_config):
    return ConversationStore(fake_redis, testing_config)


# ────────────────────────────────────────────────────────
# Redis store
# ────────────────────────────────────────────────────────

def test_create_and_insert(store, fake_redis):
    conversation_id = store.create_conversation("user-1")

    assert conversation_id
    assert store.owner_of(conversation_id) == "user-1"
    assert fake_redis.expiries[f"silk:conv:{conversation_id}"] == store.ttl

    assert store.insert(MessageRecord(conversation_id, "user", "hi"))
    assert store.insert(MessageRecord(conversation_id, "assistant", "Hello ₹"))
    assert store.get_messages(conversation_id) == [
        {"conversation_id": conversation_id, "role": "user", "content": "hi"},
        {"conversation_id": conversation_id, "role": "assistant", "content": "Hello ₹"},
    ]


def test_redis_outage_is_reported_not_raised(store, fake_redis):
    fake_redis.fail = RedisConnectionError("down")

    assert store.create_conversation("user-1") is None
    assert store.insert(MessageRecord("c", "user", "hi")) is False
    assert store.owner_of("c") is None
    assert store.get_messages("c") == []
    health = store.health_check()
    assert health["ping_success"] is False
    assert "down" in health["error"]


def test_corrupt_rows_are_skipped(store, fake_redis):
    fake_redis.lists["silk:conv:c:messages"] = ["{bad", json.dumps({"role": "user", "content": "ok"})]
    assert store.get_messages("c") == [{"role": "user", "content": "ok"}]


def test_token_issue_and_resolve(fake_redis, testing_config):
    resolver = TokenResolver(fake_redis, testing_config)

    token = resolver.issue("user-9")

    assert resolver.resolve(token) == "user-9"
    assert resolver.resolve("unknown") is None
    assert resolver.resolve("") is None
    assert resolver.resolve(None) is None


# ────────────────────────────────────────────────────────
# HTTP endpoints
# ────────────────────────────────────────────────────────

def test_conversation_endpoints(client, auth_headers):
    resp = client.post("/functions/v1/conversations", headers=auth_headers)
    assert resp.status_code == 201
    conversation_id = resp.get_json()["id"]

    resp = client.post(
        f"/functions/v1/conversations/{conversation_id}/messages",
        json={"role": "user", "content": "hi"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    assert resp.get_json() == {"ok": True}

    resp = client.get(f"/functions/v1/conversations/{conversation_id}/messages", headers=auth_headers)
    assert resp.status_code == 200
    assert [m["content"] for m in resp.get_json()["messages"]] == ["hi"]


def test_conversation_endpoints_require_auth(client):
    assert client.post("/functions/v1/conversations").status_code == 401
    assert client.get("/functions/v1/conversations/x/messages").status_code == 401


def test_other_users_conversation_is_hidden(client, app, auth_headers):
    other_id = app.extensions["conversation_store"].create_conversation("someone-else")

    resp = client.post(
        f"/functions/v1/conversations/{other_id}/messages",
        json={"role": "user", "content": "hi"},
        headers=auth_headers,
    )
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "body",
    [{"role": "system", "content": "x"}, {"role": "user"}, {"role": "user", "content": 1}, {}],
)
def test_insert_validation(client, auth_headers, body):
    conversation_id = client.post("/functions/v1/conversations", headers=auth_headers).get_json()["id"]
    resp = client.post(f"/functions/v1/conversations/{conversation_id}/messages", json=body, headers=auth_headers)
    assert resp.status_code == 400


def test_create_during_outage_is_503(client, fake_redis, auth_headers):
    fake_redis.fail = RedisConnectionError("down")
    resp = client.post("/functions/v1/conversations", headers=auth_headers)
    assert resp.status_code == 503


# ────────────────────────────────────────────────────────
# Health
# ────────────────────────────────────────────────────────

def test_health_ok(client, app):
    app.config["AI_GATEWAY_CONFIGURED"] = True
    resp = client.get("/rs/health")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "status": "healthy",
        "redis": "connected",
        "ai_gateway": "configured",
        "service": "silk-bot",
    }


def test_health_reports_redis_outage(client, app, fake_redis):
    app.config["AI_GATEWAY_CONFIGURED"] = False
    fake_redis.fail = RedisConnectionError("down")
    resp = client.get("/rs/health")
    assert resp.status_code == 500
    assert resp.get_json()["status"] == "unhealthy"
    assert resp.get_json()["ai_gateway"] == "missing_key"


def test_unknown_path_is_json_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Endpoint not found"


def test_chat_ui_page(client):
    resp = client.get("/chat/ui")
    assert resp.status_code == 200
    assert "text/html" in resp.content_type
    assert "SILK Finance" in resp.get_data(as_text=True)


# ────────────────────────────────────────────────────────
# HTTP client store
# ────────────────────────────────────────────────────────

def test_http_store_paths(fake_http, fake_response):
    auth = AuthContext("good-token", "user-1")
    session = fake_http(fake_response(201, body={"id": "conv-7"}))
    store = HttpConversationStore.for_agent_url("http://h/functions/v1/master-agent", auth, session=session)

    assert store.create_conversation("user-1") == "conv-7"
    session.response = fake_response(201, body={"ok": True})
    assert store.insert(MessageRecord("conv-7", "user", "hi")) is True

    assert [c["url"] for c in session.calls] == [
        "http://h/functions/v1/conversations",
        "http://h/functions/v1/conversations/conv-7/messages",
    ]
    assert session.calls[1]["json"] == {"role": "user", "content": "hi"}


def test_http_store_failures_return_falsy(fake_http, fake_response):
    auth = AuthContext("good-token", "user-1")
    store = HttpConversationStore("http://h/conversations", auth, session=fake_http(fake_response(503)))

    assert store.create_conversation("user-1") is None
    assert store.insert(MessageRecord("c", "user", "hi")) is False


def test_chat_ui_stop_drops_empty_placeholder(client):
    page = client.get("/chat/ui").get_data(as_text=True)
    abort_branch = page[page.index("} else if (acc) {"):page.index("} finally {")]
    assert "} else if (placed) {" in abort_branch
    assert "messages = messages.slice(0, -1);" in abort_branch
