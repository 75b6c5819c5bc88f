"""Shared HTTP fakes for the test-suite."""

from __future__ import annotations

from typing import Callable

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def make_client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def route(table: dict[str, tuple[int, str]]) -> Handler:
    """Serve fixed bodies keyed by full URL; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        status, body = table.get(str(request.url), (404, "not found"))
        return httpx.Response(status, text=body, request=request)

    return handler


def offline(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")
