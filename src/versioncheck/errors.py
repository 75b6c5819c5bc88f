"""Exception hierarchy shared by the engine and the CLI."""

from __future__ import annotations


class VersionCheckError(Exception):
    """Base class for every error raised by versioncheck."""


class ConfigError(VersionCheckError):
    """Malformed configuration, unknown name or unsupported source shape."""


class VersionParseError(VersionCheckError):
    def __init__(self, raw: str, reason: str = "could not be parsed as a version"):
        self.raw = raw
        super().__init__(f"'{raw}' {reason}")


class FetchError(VersionCheckError):
    """An upstream or remote file request failed."""

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(message)


class ResolutionError(VersionCheckError):
    """Candidates were fetched but none could be selected."""


class UsageError(VersionCheckError):
    """A pinned version could not be read from a usage location."""
