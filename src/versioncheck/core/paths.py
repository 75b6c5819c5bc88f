"""Map usage sources onto local checkout paths."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass

from versioncheck.config.schema import PathsConfig
from versioncheck.errors import ConfigError

logger = logging.getLogger(__name__)

# An alias table whose expansion never settles is cyclic.
MAX_ALIAS_PASSES = 64


@dataclass(frozen=True)
class LocalSource:
    path: str


@dataclass(frozen=True)
class GithubSource:
    owner: str
    repo: str
    ref: str
    path: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


FileSource = LocalSource | GithubSource


def expand_aliases(path: str, alias: dict[str, str]) -> str:
    """Apply every alias substitution until a full pass changes nothing."""
    for _ in range(MAX_ALIAS_PASSES):
        changed = False
        for key, value in alias.items():
            replaced = path.replace(key, value)
            if replaced != path:
                changed = True
                path = replaced
        if not changed:
            return path
    raise ConfigError(f"Alias expansion of {path} does not terminate")


def normalize_paths(source: FileSource, paths: PathsConfig) -> str:
    """Return the concrete filesystem path for *source*."""
    if isinstance(source, GithubSource):
        mapped = paths.github.get(source.slug)
        if mapped is None:
            raise ConfigError(f"Could not resolve github path {source.slug}")
        return normalize_paths(LocalSource(posixpath.join(mapped, source.path)), paths)

    resolved = expand_aliases(source.path, paths.alias)
    logger.debug("Resolved %s -> %s", source.path, resolved)
    return resolved
