"""Shared test doubles: a hand-driven clock and a scripted REST server."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Optional, Union

import httpx

from familyaid.database import LocalStore
from familyaid.models.identity import Identity

BASE_URL = "https://aid.example.org"

HEAD_PAYLOAD: dict[str, Any] = {"id": 7, "username": "405857004", "role": "head"}
ADMIN_PAYLOAD: dict[str, Any] = {"id": 2, "username": "admin", "role": "admin"}
DUAL_PAYLOAD: dict[str, Any] = {"id": 3, "username": "405857004", "role": "admin"}
ROOT_PAYLOAD: dict[str, Any] = {"id": 1, "username": "root", "role": "root"}

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], Exception]


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeServer:
    """``httpx.MockTransport`` handler keyed by ``(method, path)``.

    Each route holds a queue of replies; the last one repeats.  Replies
    may be responses, callables taking the request, or exceptions to
    raise.  Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, *replies: Reply) -> "FakeServer":
        self._routes[(method, path)] = list(replies)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "Not found"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            # Fresh copy: a repeated reply is handed to the client more than once.
            return httpx.Response(
                reply.status_code, headers=reply.headers, content=reply.content,
            )
        return reply(request)


def json_reply(status: int, body: Optional[Any] = None) -> httpx.Response:
    if body is None:
        return httpx.Response(status)
    return httpx.Response(status, json=body)


def identity(payload: dict[str, Any]) -> Identity:
    return Identity.model_validate(payload)


def audit_actions(store: LocalStore) -> list[str]:
    rows = store.sqlite.execute("SELECT action FROM audit_log ORDER BY id").fetchall()
    return [row["action"] for row in rows]
