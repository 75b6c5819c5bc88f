"""Select current and latest versions from an adapter's candidates."""

from __future__ import annotations

import logging

from versioncheck.config.schema import BaseFetch, describe_spec
from versioncheck.errors import ResolutionError
from versioncheck.models import FetchResult
from versioncheck.models.version import Version, sort_newest_first

logger = logging.getLogger(__name__)


def resolve(candidates: Version | list[Version], spec: BaseFetch) -> FetchResult:
    """Filter, sort and pick the version matching ``spec.version_spec``.

    A single version (commit lookups) is returned as is. Otherwise the
    candidates lose their prereleases unless the upstream asks for them, are
    sorted newest first, and the newest one satisfying the version spec
    becomes current.
    """
    if isinstance(candidates, Version):
        return FetchResult(version=candidates)

    if not candidates:
        raise ResolutionError(f"No versions found for {describe_spec(spec)}")

    valid = candidates if spec.prerelease else [v for v in candidates if not v.prerelease]
    if not valid:
        raise ResolutionError(f"No valid versions for {describe_spec(spec)}")

    ordered = sort_newest_first(valid)
    latest = ordered[0]

    if spec.version_spec:
        current = next((v for v in ordered if v.satisfies(spec.version_spec)), None)
        if current is None:
            raise ResolutionError(f"No compatible version {describe_spec(spec)}")
    else:
        current = latest

    logger.debug(
        "%s: %d candidate(s), current %s, latest %s",
        describe_spec(spec), len(ordered), current.main, latest.main,
    )
    return FetchResult(version=current, latest=latest, versions=ordered)
