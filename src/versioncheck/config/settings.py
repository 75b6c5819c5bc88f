"""Application configuration and defaults."""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path


def _default_cache_file() -> Path:
    """Return the default location of the fetch cache database.

    Checks VERSIONCHECK_CACHE first, then the platform cache directory.
    """
    explicit = os.environ.get("VERSIONCHECK_CACHE", "")
    if explicit:
        return Path(explicit)
    system = platform.system()
    if system == "Windows":
        local = os.environ.get("LOCALAPPDATA", "")
        if local:
            return Path(local) / "versioncheck" / "cache.db"
        return Path.home() / "AppData" / "Local" / "versioncheck" / "cache.db"
    # Linux / macOS
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    if xdg:
        return Path(xdg) / "versioncheck" / "cache.db"
    return Path.home() / ".cache" / "versioncheck" / "cache.db"


def _env_path(name: str, default: str) -> Path:
    return Path(os.environ.get(name, "") or default)


@dataclass
class Settings:
    config_file: Path = field(default_factory=lambda: _env_path("VERSIONCHECK_CONFIG", "config.yaml"))
    paths_file: Path = field(default_factory=lambda: _env_path("VERSIONCHECK_PATHS", "paths.yaml"))
    cache_file: Path = field(default_factory=_default_cache_file)
    github_token: str = field(default_factory=lambda: os.environ.get("GITHUB_TOKEN", ""))
    github_api: str = "https://api.github.com"
    request_timeout: float = 30.0
    default_output: str = "table"


# Global singleton
settings = Settings()
