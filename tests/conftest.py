"""
Shared pytest fixtures for SmolKV client tests.

Provides an in-memory SmolKV server exposed through ``httpx.MockTransport``
so client and CLI tests exercise real request/response handling without
a network.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from smolkv_client import SmolKVClient

ENDPOINT = "http://smolkv.test"


class FakeSmolKVServer:
    """Minimal in-memory implementation of the SmolKV HTTP contract."""

    def __init__(self, secret: Optional[str] = None):
        self.secret = secret
        self.collections: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []

    def _json(self, status: int, value: Any) -> httpx.Response:
        return httpx.Response(status, json=value)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.secret is not None and request.headers.get("X-SECRET-KEY") != self.secret:
            return httpx.Response(401, text="unauthorized")

        path = request.url.path
        if not path.startswith("/api/"):
            return httpx.Response(404)

        collection, _, key = path[len("/api/") :].partition("/")
        method = request.method

        if not key:
            return self._collection(method, collection, request)
        if collection not in self.collections:
            return httpx.Response(404, text="collection not found")
        if key == "_batch" and method == "PUT":
            for item in json.loads(request.content):
                self.collections[collection][item["key"]] = item["value"]
            return self._json(200, {"count": len(self.collections[collection])})
        return self._key(method, collection, key, request)

    def _collection(self, method: str, name: str, request: httpx.Request) -> httpx.Response:
        exists = name in self.collections
        if method == "HEAD":
            return httpx.Response(200 if exists else 404)
        if method == "PUT":
            if exists:
                return httpx.Response(409, text="exists")
            self.collections[name] = {}
            return self._json(201, {"collection": name, "created": True})
        if not exists:
            return httpx.Response(404, text="collection not found")
        if method == "DELETE":
            del self.collections[name]
            return self._json(200, {"collection": name, "dropped": True})

        records = sorted(self.collections[name].items())
        if method == "GET":
            options = dict(request.url.params)
            include_keys = options.get("keys") == "true"
        else:
            options = json.loads(request.content)
            include_keys = bool(options.get("keys"))
            if options.get("query") == "!!":
                return httpx.Response(400, text="invalid query expression")

        if options.get("from") is not None:
            records = [r for r in records if r[0] >= options["from"]]
        if options.get("to") is not None:
            records = [r for r in records if r[0] <= options["to"]]
        if options.get("order") == "desc":
            records.reverse()
        if options.get("limit") is not None:
            records = records[: int(options["limit"])]

        return self._json(
            200,
            [{"key": k, **v} if include_keys else v for k, v in records],
        )

    def _key(
        self, method: str, collection: str, key: str, request: httpx.Request
    ) -> httpx.Response:
        records = self.collections[collection]
        if method == "PUT":
            records[key] = json.loads(request.content)
            return self._json(200, {"key": key, "stored": True})
        if key not in records:
            return httpx.Response(404, text="key not found")
        if method == "GET":
            return self._json(200, records[key])
        if method == "HEAD":
            return httpx.Response(200)
        if method == "DELETE":
            del records[key]
            return self._json(200, {"deleted": True})
        return httpx.Response(405)


@pytest.fixture
def fake_server() -> FakeSmolKVServer:
    return FakeSmolKVServer()


@pytest.fixture
def secured_server() -> FakeSmolKVServer:
    """In-memory server that requires the secret 'right'."""
    return FakeSmolKVServer(secret="right")


@pytest.fixture
def fake_client(fake_server: FakeSmolKVServer) -> SmolKVClient:
    """Client wired to the in-memory server."""
    return SmolKVClient(ENDPOINT, transport=httpx.MockTransport(fake_server.handle))


@pytest.fixture
def make_client():
    """Factory for clients whose requests are answered by a handler function."""

    def _make(handler, secret: Optional[str] = None) -> SmolKVClient:
        return SmolKVClient(ENDPOINT, secret, transport=httpx.MockTransport(handler))

    return _make
