"""Read the version a usage location currently pins."""

from __future__ import annotations

import asyncio
import json
import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit

import httpx
import jmespath
import yaml
from jmespath.exceptions import JMESPathError

from versioncheck.config.schema import (
    NixFlakeParser,
    PathsConfig,
    RegexpParser,
    UsageSpec,
    YamlParser,
)
from versioncheck.config.settings import settings
from versioncheck.core.http import get_text, token_for_owner
from versioncheck.core.paths import FileSource, GithubSource, LocalSource, normalize_paths
from versioncheck.errors import ConfigError, UsageError
from versioncheck.models.version import Version, make_version
from versioncheck.utils.regexp import require_regexp

logger = logging.getLogger(__name__)


@dataclass
class UsageContext:
    client: httpx.AsyncClient | None = None
    tokens: dict[str, str] | None = None
    paths: PathsConfig | None = None


def normalize_source(source: str) -> FileSource:
    """Classify a usage source as a local path or a GitHub blob URL."""
    if source.startswith("/"):
        return LocalSource(source)

    url = urlsplit(source if "://" in source else f"https://{source}")
    if url.hostname != "github.com":
        raise ConfigError(f"Unsupported path: {source}")

    parts = url.path.split("/")
    # ["", owner, repo, "blob", ref, *path]
    if len(parts) < 6 or parts[3] != "blob" or not parts[4] or not all(parts[5:]):
        raise ConfigError(f"Invalid github URL: {source}")
    return GithubSource(
        owner=parts[1],
        repo=parts[2],
        ref=parts[4],
        path=posixpath.join(*parts[5:]),
    )


async def _read_file(path: str) -> str:
    try:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except OSError as exc:
        raise UsageError(f"Failed to read file: {path}") from exc


async def get_file(source: FileSource, context: UsageContext) -> str:
    """Materialize the raw text behind *source*."""
    if isinstance(source, LocalSource):
        path = normalize_paths(source, context.paths) if context.paths else source.path
        return await _read_file(path)

    if context.tokens:
        if context.client is None:
            raise UsageError(f"No HTTP client to fetch {source.slug}/{source.path}")
        url = f"{settings.github_api}/repos/{source.owner}/{source.repo}/contents/{quote(source.path)}"
        return await get_text(
            context.client,
            url,
            token=token_for_owner(context.tokens, source.owner),
            headers={"Accept": "application/vnd.github.raw"},
            params={"ref": source.ref},
        )
    if context.paths:
        return await _read_file(normalize_paths(source, context.paths))
    raise UsageError(f"{source.slug}: GitHub sources require a path mapping or a credential")


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_stringify(v) for v in value)
    return str(value)


def extract_yaml(raw_text: str, parser: YamlParser, origin: str) -> str:
    try:
        documents = list(yaml.safe_load_all(raw_text))
    except yaml.YAMLError as exc:
        raise UsageError(f"Could not parse {origin} as YAML: {exc}") from exc
    data = documents[0] if len(documents) == 1 else documents

    try:
        found = jmespath.search(parser.query, data)
    except JMESPathError as exc:
        raise UsageError(f"Invalid query {parser.query}: {exc}") from exc
    if found is None:
        raise UsageError(f"{parser.query} in {origin} not found")
    return require_regexp(_stringify(found), parser.regexp)


def extract_flake_input(raw_text: str, parser: NixFlakeParser, origin: str) -> str:
    try:
        lock = json.loads(raw_text)
        return lock["nodes"][parser.input]["locked"]["rev"]
    except json.JSONDecodeError as exc:
        raise UsageError(f"Could not parse {origin} as JSON: {exc}") from exc
    except (KeyError, TypeError) as exc:
        raise UsageError(f"No locked revision for input {parser.input} in {origin}") from exc


def extract_version(raw_text: str, spec: UsageSpec) -> str:
    parser = spec.parser
    if isinstance(parser, YamlParser):
        return extract_yaml(raw_text, parser, spec.source)
    if isinstance(parser, RegexpParser):
        return require_regexp(raw_text, parser.regexp)
    if isinstance(parser, NixFlakeParser):
        return extract_flake_input(raw_text, parser, spec.source)
    raise ConfigError(f"Unknown parser type {parser.type}")


async def resolve_usage(spec: UsageSpec, context: UsageContext) -> Version:
    """Read *spec*'s source and turn the pinned string into a Version."""
    source = normalize_source(spec.source)
    raw_text = await get_file(source, context)
    version = make_version(extract_version(raw_text, spec))
    logger.debug("%s pins %s", spec.source, version.main)
    return version


def usage_local_path(spec: UsageSpec, paths: PathsConfig | None) -> str:
    """Concrete filesystem path of a file usage."""
    if spec.type != "file":
        raise ConfigError(f"Usage {spec.source} is not file based")
    if paths is None:
        raise ConfigError("Resolving local paths requires a paths mapping")
    return normalize_paths(normalize_source(spec.source), paths)
