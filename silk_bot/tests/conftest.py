from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from silk_bot import create_app
from silk_bot.config import TestingConfig


def delta_frame(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}, ensure_ascii=False) + "\n\n"


class FakeResponse:
    """Just enough of requests.Response for the proxy and the client."""

    def __init__(self, status_code: int = 200, chunks: Optional[List[bytes]] = None, body: Any = "",
                 fail_after: Optional[int] = None, error: Optional[Exception] = None):
        self.status_code = status_code
        self.chunks = chunks or []
        self._body = body
        self.fail_after = fail_after
        self.error = error
        self.closed = False
        self.headers = {"Content-Type": "text/event-stream" if status_code == 200 else "application/json"}

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def text(self) -> str:
        return self._body if isinstance(self._body, str) else json.dumps(self._body)

    def json(self):
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body

    def iter_content(self, chunk_size: int = 1):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise self.error
            if self.closed:
                # what urllib3 does once the response was released under it
                raise AttributeError("'NoneType' object has no attribute 'read'")
            yield chunk
        if self.fail_after is not None and self.fail_after >= len(self.chunks):
            raise self.error

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def close(self):
        self.closed = True


class FakeHTTPSession:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self.redis = redis
        self.ops = []

    def rpush(self, key, value):
        self.ops.append(("rpush", key, value))
        return self

    def expire(self, key, ttl):
        self.ops.append(("expire", key, ttl))
        return self

    def execute(self):
        if self.redis.fail:
            raise self.redis.fail
        for op, key, arg in self.ops:
            if op == "rpush":
                self.redis.lists.setdefault(key, []).append(arg)
            else:
                self.redis.expiries[key] = arg
        return [True] * len(self.ops)


class FakeRedis:
    def __init__(self):
        self.values: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.expiries: Dict[str, Any] = {}
        self.fail: Optional[Exception] = None

    def _check(self):
        if self.fail:
            raise self.fail

    def ping(self):
        self._check()
        return True

    def get(self, key):
        self._check()
        return self.values.get(key)

    def set(self, key, value, ex=None, nx=False):
        self._check()
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.expiries[key] = ex
        return True

    def lrange(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]

    def pipeline(self):
        return FakePipeline(self)


class FakeTokenResolver:
    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = tokens or {"good-token": "user-1"}

    def resolve(self, token):
        return self.tokens.get(token)


@pytest.fixture()
def testing_config():
    cfg = TestingConfig()
    cfg.AI_GATEWAY_API_KEY = "test-key"
    cfg.AI_GATEWAY_URL = "https://gateway.test/v1/chat/completions"
    cfg.AI_MODEL = "google/gemini-2.5-flash"
    return cfg


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def app(fake_redis, testing_config):
    from silk_bot.conversation_store import ConversationStore, CustomerProfileStore

    app = create_app("testing")
    app.config.update(TESTING=True)
    app.extensions["conversation_store"] = ConversationStore(fake_redis, testing_config)
    app.extensions["token_resolver"] = FakeTokenResolver()
    app.extensions["customer_profiles"] = CustomerProfileStore(fake_redis, testing_config)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_headers():
    return {"Authorization": "Bearer good-token"}


# Helpers handed out as fixtures so test modules never import conftest directly.

@pytest.fixture()
def frame():
    return delta_frame


@pytest.fixture()
def fake_response():
    return FakeResponse


@pytest.fixture()
def fake_http():
    return FakeHTTPSession
