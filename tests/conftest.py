from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from seedkey.bus.local import LocalEventBus
from seedkey.client.api import ApiClient
from seedkey.client.sdk import SeedKey
from seedkey.config import SeedKeyOptions
from seedkey.protocol.constants import REQUEST_EVENT, RESPONSE_EVENT
from seedkey.protocol.envelope import build_response

BACKEND_URL = "https://api.example.com"
ORIGIN = "https://app.example.com"
DOMAIN = "app.example.com"


def make_challenge(action: str = "authenticate", **overrides) -> Dict[str, Any]:
    challenge = {
        "nonce": "bm9uY2U=",
        "timestamp": 1_700_000_000_000,
        "domain": DOMAIN,
        "action": action,
        "expiresAt": 1_700_000_300_000,
    }
    challenge.update(overrides)
    return challenge


def make_auth_result(user_id: str = "u1", action: str = "login") -> Dict[str, Any]:
    return {
        "success": True,
        "action": action,
        "user": {"id": user_id, "publicKey": "k1", "createdAt": "2024-01-01T00:00:00Z"},
        "token": {"accessToken": "access", "refreshToken": "refresh", "expiresIn": 3600},
    }


class ScriptedCustodian:
    """Answers channel requests from a per-action script.

    A script entry is either ``("ok", result)``, ``("error", code, message)``
    or ``None`` for no answer at all.
    """

    def __init__(self, bus: LocalEventBus):
        self.bus = bus
        self.requests: List[Dict[str, Any]] = []
        self.script: Dict[str, Optional[Tuple]] = {}
        bus.subscribe(REQUEST_EVENT, self._on_request)

    def on(self, action: str, result: Any = None) -> "ScriptedCustodian":
        self.script[action] = ("ok", result)
        return self

    def fail(self, action: str, code: str, message: str = "failed") -> "ScriptedCustodian":
        self.script[action] = ("error", code, message)
        return self

    def silent(self, action: str) -> "ScriptedCustodian":
        self.script[action] = None
        return self

    def actions(self) -> List[str]:
        return [r["action"] for r in self.requests]

    async def respond(self, request_id: str, result: Any = None, code: Optional[str] = None, message: str = "failed"):
        if code is None:
            await self.bus.publish(RESPONSE_EVENT, build_response(request_id, result=result))
        else:
            await self.bus.publish(RESPONSE_EVENT, build_response(request_id, error_code=code, error_message=message))

    async def _on_request(self, detail: Dict[str, Any]) -> None:
        self.requests.append(detail)
        entry = self.script.get(detail["action"])
        if entry is None:
            return
        if entry[0] == "ok":
            await self.respond(detail["requestId"], result=entry[1])
        else:
            await self.respond(detail["requestId"], code=entry[1], message=entry[2])


class Backend:
    """Routes ``(method, path)`` to canned ``(status, body)`` replies and records calls."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: List[httpx.Request] = []

    def reply(self, method: str, path: str, status: int = 200, body: Any = None, raw: Optional[bytes] = None):
        def handler(request: httpx.Request) -> httpx.Response:
            if raw is not None:
                return httpx.Response(status, content=raw)
            return httpx.Response(status, json=body if body is not None else {})

        self.routes[(method, path)] = handler
        return self

    def raise_error(self, method: str, path: str, exc: Exception):
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc

        self.routes[(method, path)] = handler
        return self

    def body(self, index: int) -> Dict[str, Any]:
        return json.loads(self.calls[index].content)

    def paths(self) -> List[str]:
        return [c.url.path for c in self.calls]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "SERVER_ERROR", "message": "no route"})
        return handler(request)


@pytest.fixture
def bus():
    return LocalEventBus()


@pytest.fixture
def custodian(bus):
    return ScriptedCustodian(bus)


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
async def http(backend):
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handle))
    yield client
    await client.aclose()


@pytest.fixture
def api(http):
    return ApiClient(BACKEND_URL, http=http)


@pytest.fixture
def options():
    return SeedKeyOptions(backend_url=BACKEND_URL, origin=ORIGIN, timeout=1.0)


@pytest.fixture
async def sdk(options, bus, http):
    instance = SeedKey(options, bus, http=http)
    yield instance
    instance.destroy()
