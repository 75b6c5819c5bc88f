"""Version value types and their comparison / equivalence rules."""

from __future__ import annotations

import abc
import enum
import functools
import re
from dataclasses import dataclass, field

import semantic_version

from versioncheck.errors import VersionParseError

_COMMIT_RE = re.compile(r"^[0-9a-f]{40}$")
_CLEAN_RE = re.compile(r"^[=v]+")
_LEADING_V_RE = re.compile(r"^v([0-9])")
_COERCE_RE = re.compile(r"(?<!\d)(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_CHANNEL_RE = re.compile(
    r"^(?P<channel>.+?)-(?P<release>\d+(?:\.\d+)*)(?:pre(?P<revision>\d+))?"
    r"\.(?P<short_hash>[0-9a-f]{6,40})$"
)


class VersionKind(enum.Enum):
    SEMANTIC = "semantic"
    COMMIT = "commit"
    CHANNEL = "channel"


_KIND_RANK = {kind: rank for rank, kind in enumerate(VersionKind)}


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _parse_strict(raw: str) -> semantic_version.Version | None:
    try:
        return semantic_version.Version(raw)
    except ValueError:
        return None


def _coerce(raw: str) -> semantic_version.Version | None:
    """Pick the first ``N[.N[.N]]`` run out of *raw*, dropping everything else."""
    match = _COERCE_RE.search(raw)
    if match is None:
        return None
    parts = [int(p) if p is not None else 0 for p in match.groups()]
    return semantic_version.Version(major=parts[0], minor=parts[1], patch=parts[2])


def _match_spec(spec: str, version: semantic_version.Version) -> bool:
    try:
        return semantic_version.NpmSpec(spec).match(version)
    except ValueError as exc:
        raise VersionParseError(spec, f"is not a valid version spec: {exc}") from exc


def clean_version(raw: str) -> str:
    """Strip the leading ``v`` even for strings that are not semantic versions."""
    stripped = raw.strip()
    parsed = _parse_strict(_CLEAN_RE.sub("", stripped))
    if parsed is not None:
        return str(parsed)
    return _LEADING_V_RE.sub(r"\1", stripped)


class Version(abc.ABC):
    """Common surface of every version variant.

    ``compare`` orders ascending (negative when self is older); sorting with
    ``reverse=True`` yields newest first. Versions of different kinds order
    by kind, so mixed lists still sort consistently. ``equivalent`` asks whether *self*
    can stand in for *other* and is not symmetric in general.
    """

    kind: VersionKind
    main: str
    app: str | None
    prerelease: bool

    @abc.abstractmethod
    def compare(self, other: Version) -> int: ...

    @abc.abstractmethod
    def satisfies(self, spec: str) -> bool: ...

    @abc.abstractmethod
    def equivalent(self, other: Version) -> bool: ...

    def _compare_kind(self, other: Version) -> int:
        return _cmp(_KIND_RANK[self.kind], _KIND_RANK[other.kind]) or _cmp(self.main, other.main)

    def display(self) -> str:
        if self.app:
            return f"{self.main} [{self.app}]"
        return self.main

    def __str__(self) -> str:
        return self.main


@dataclass(frozen=True)
class SemanticVersion(Version):
    main: str
    semantic: semantic_version.Version = field(compare=False)
    strict: bool = True
    app: str | None = None
    prerelease: bool = False

    kind = VersionKind.SEMANTIC

    @classmethod
    def parse(cls, raw: str, app: str | None = None, prerelease: bool | None = None) -> SemanticVersion:
        # coercion loses prerelease tags, so strict parsing goes first
        candidate = _CLEAN_RE.sub("", raw.strip())
        semantic = _parse_strict(candidate)
        strict = semantic is not None
        if semantic is None:
            semantic = _coerce(candidate)
        if semantic is None:
            raise VersionParseError(raw)
        return cls(
            main=clean_version(raw),
            semantic=semantic,
            strict=strict,
            app=clean_version(app) if app else None,
            prerelease=bool(semantic.prerelease) if prerelease is None else prerelease,
        )

    def compare(self, other: Version) -> int:
        if not isinstance(other, SemanticVersion):
            return self._compare_kind(other)
        # non-strict versions order by their coerced value
        return _cmp(self.semantic, other.semantic) or _cmp(self.main, other.main)

    def satisfies(self, spec: str) -> bool:
        return _match_spec(spec, self.semantic)

    def equivalent(self, other: Version) -> bool:
        return isinstance(other, SemanticVersion) and other.main == self.main


@dataclass(frozen=True)
class CommitVersion(Version):
    main: str
    app: str | None = None

    kind = VersionKind.COMMIT
    prerelease = False

    def __post_init__(self) -> None:
        if not _COMMIT_RE.match(self.main):
            raise VersionParseError(self.main, "is not a 40 character commit hash")

    @property
    def sha(self) -> str:
        return self.main

    def compare(self, other: Version) -> int:
        if not isinstance(other, CommitVersion):
            return self._compare_kind(other)
        return _cmp(self.main, other.main)

    def satisfies(self, spec: str) -> bool:
        return self.main == spec

    def equivalent(self, other: Version) -> bool:
        return isinstance(other, CommitVersion) and other.sha == self.sha


@dataclass(frozen=True)
class ChannelVersion(Version):
    main: str
    channel: str
    release: tuple[int, ...]
    revision: int
    short_hash: str
    app: str | None = None

    kind = VersionKind.CHANNEL
    prerelease = False

    @classmethod
    def parse(cls, label: str) -> ChannelVersion:
        match = _CHANNEL_RE.match(label)
        if match is None:
            raise VersionParseError(label, "is not a channel snapshot label")
        return cls(
            main=label,
            channel=match.group("channel"),
            release=tuple(int(p) for p in match.group("release").split(".")),
            revision=int(match.group("revision") or 0),
            short_hash=match.group("short_hash"),
        )

    @property
    def label(self) -> str:
        return self.main

    def compare(self, other: Version) -> int:
        if not isinstance(other, ChannelVersion):
            return self._compare_kind(other)
        return (
            _cmp((self.release, self.revision), (other.release, other.revision))
            or _cmp(self.main, other.main)
        )

    def satisfies(self, spec: str) -> bool:
        release = _coerce(".".join(str(p) for p in self.release))
        return release is not None and _match_spec(spec, release)

    def equivalent(self, other: Version) -> bool:
        if isinstance(other, ChannelVersion):
            return other.label == self.label
        # a pinned commit is covered by the snapshot it was taken from
        return isinstance(other, CommitVersion) and other.sha.startswith(self.short_hash)


def make_version(main: str, app: str | None = None, prerelease: bool | None = None) -> Version:
    """Build a version from a raw candidate string."""
    if _COMMIT_RE.match(main):
        return CommitVersion(main, app=app)
    return SemanticVersion.parse(main, app=app, prerelease=prerelease)


version_sort_key = functools.cmp_to_key(lambda a, b: a.compare(b))


def sort_newest_first(versions: list[Version]) -> list[Version]:
    return sorted(versions, key=version_sort_key, reverse=True)
