"""Data models for versioncheck."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from versioncheck.models.version import Version


class UsageStatus(enum.Enum):
    UP_TO_DATE = "up-to-date"
    OUTDATED = "outdated"
    ERROR = "error"


@dataclass
class FetchResult:
    version: Version
    latest: Version | None = None
    versions: list[Version] | None = None

    @property
    def behind_latest(self) -> bool:
        return self.latest is not None and self.latest.main != self.version.main


@dataclass
class CheckResult:
    name: str
    upstream: FetchResult | None
    outdated: dict[str, Version] = field(default_factory=dict)
    errored: list[str] = field(default_factory=list)
    usages: dict[str, Version] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.upstream is not None and not self.errored

    @property
    def is_outdated(self) -> bool:
        return bool(self.outdated)

    def status_of(self, usage: str) -> UsageStatus:
        if usage in self.errored:
            return UsageStatus.ERROR
        if usage in self.outdated:
            return UsageStatus.OUTDATED
        return UsageStatus.UP_TO_DATE
