"""Per-invocation state built from the global CLI options."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator

import httpx
import typer

from versioncheck.config.schema import Config, PathsConfig, load_config, load_paths, load_yaml
from versioncheck.config.settings import settings
from versioncheck.core.cache import SourceCache
from versioncheck.core.http import FetchContext
from versioncheck.core.usage import UsageContext
from versioncheck.errors import VersionCheckError

logger = logging.getLogger(__name__)


@dataclass
class GlobalOptions:
    config: Path = field(default_factory=lambda: settings.config_file)
    paths: Path | None = None
    cache: Path = field(default_factory=lambda: settings.cache_file)
    tokens: list[str] = field(default_factory=list)
    update: bool = False

    def load_config(self) -> Config:
        return load_config(self.config)

    def load_paths(self) -> PathsConfig | None:
        # an explicit --paths must exist, the default one is optional
        if self.paths is not None:
            return load_yaml(self.paths, PathsConfig)
        return load_paths(settings.paths_file)

    def token_map(self) -> dict[str, str] | None:
        return parse_tokens(self.tokens, settings.github_token)


def parse_tokens(values: list[str], env_token: str = "") -> dict[str, str] | None:
    """Turn ``owner=TOKEN`` / ``TOKEN`` values into an owner -> token map."""
    tokens: dict[str, str] = {}
    for value in values:
        owner, sep, token = value.partition("=")
        if sep:
            tokens[owner] = token
        else:
            tokens["default"] = value
    if env_token and "default" not in tokens:
        tokens["default"] = env_token
    return tokens or None


@dataclass
class Runtime:
    fetch: FetchContext
    usage: UsageContext


@asynccontextmanager
async def open_runtime(opts: GlobalOptions, paths: PathsConfig | None) -> AsyncIterator[Runtime]:
    tokens = opts.token_map()
    with SourceCache(opts.cache) as cache:
        async with httpx.AsyncClient(
            timeout=settings.request_timeout,
            follow_redirects=True,
            headers={"User-Agent": "versioncheck"},
        ) as client:
            yield Runtime(
                fetch=FetchContext(cache=cache, client=client, update=opts.update, tokens=tokens),
                usage=UsageContext(client=client, tokens=tokens, paths=paths),
            )


def fail(error: VersionCheckError | str) -> typer.Exit:
    """Report *error* on stderr and return the Exit to raise."""
    typer.echo(str(error), err=True)
    return typer.Exit(code=1)
