"""Cached HTTP GET shared by the fetch adapters and the usage extractor."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from versioncheck.core.cache import BodyCache
from versioncheck.errors import FetchError

logger = logging.getLogger(__name__)


@dataclass
class FetchContext:
    """Per-invocation state threaded through every upstream fetch."""

    cache: BodyCache
    client: httpx.AsyncClient
    update: bool = False
    tokens: dict[str, str] | None = None

    def cached(self, key: str) -> str | None:
        if self.update:
            return None
        return self.cache.get(key)


def token_for_owner(tokens: dict[str, str] | None, owner: str) -> str | None:
    if not tokens:
        return None
    return tokens.get(owner) or tokens.get("default")


def auth_headers(token: str | None) -> dict[str, str]:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


async def get_text(
    client: httpx.AsyncClient,
    url: str,
    *,
    token: str | None = None,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
) -> str:
    """GET *url* once; anything but 200 is a FetchError carrying the body."""
    request_headers = {**(headers or {}), **auth_headers(token)}
    logger.debug("GET %s", url)
    try:
        response = await client.get(url, headers=request_headers, params=params)
    except httpx.HTTPError as exc:
        raise FetchError(f"Request to {url} failed: {exc}") from exc
    if response.status_code != 200:
        raise FetchError(
            f"Got status {response.status_code}: {response.text}",
            status=response.status_code,
            body=response.text,
        )
    return response.text


async def fetch_url(
    url: str,
    context: FetchContext,
    token: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """GET *url* through the source cache, keyed by the URL itself."""
    body = context.cached(url)
    if body is None:
        body = await get_text(context.client, url, token=token, headers=headers)
        context.cache.put(url, body)
    return body
