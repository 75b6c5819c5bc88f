"""Compare every usage of each tracked dependency against its upstream."""

from __future__ import annotations

import logging
from typing import Callable

from versioncheck.config.schema import Config, FetchSpec, UsageSpec
from versioncheck.core.fetchers import fetch_version
from versioncheck.core.http import FetchContext
from versioncheck.core.usage import UsageContext, resolve_usage
from versioncheck.errors import ConfigError
from versioncheck.models import CheckResult, FetchResult
from versioncheck.models.version import Version
from versioncheck.utils.settle import partition, settle_all

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CheckResult], None]


def _display_version(upstream: FetchResult, usage: Version) -> Version:
    """Prefer the upstream's own candidate so labels like appVersion survive."""
    if upstream.versions is not None:
        for candidate in upstream.versions:
            if candidate.equivalent(usage):
                return candidate
    return usage


def find_outdated(upstream: FetchResult, usages: dict[str, Version]) -> dict[str, Version]:
    outdated: dict[str, Version] = {}
    for name, version in usages.items():
        if not upstream.version.equivalent(version):
            outdated[name] = _display_version(upstream, version)
            logger.debug("%s is behind: %s", name, outdated[name].display())
    return outdated


async def check_dependency(
    name: str,
    upstream: FetchSpec,
    usages: dict[str, UsageSpec],
    fetch_context: FetchContext,
    usage_context: UsageContext,
) -> CheckResult:
    """Resolve the upstream and every usage concurrently and diff them."""
    usage_names = list(usages)
    upstream_outcome, *usage_outcomes = await settle_all(
        [fetch_version(upstream, fetch_context)]
        + [resolve_usage(usages[key], usage_context) for key in usage_names]
    )

    upstream_result: FetchResult | None = upstream_outcome.value
    if not upstream_outcome.ok:
        logger.error("%s: upstream failed: %s", name, upstream_outcome.error)

    resolved, failed = partition(usage_names, usage_outcomes)
    for key, error in failed.items():
        logger.error("%s/%s: %s", name, key, error)

    outdated = find_outdated(upstream_result, resolved) if upstream_result is not None else {}

    return CheckResult(
        name=name,
        upstream=upstream_result,
        outdated=outdated,
        errored=list(failed),
        usages=resolved,
    )


async def check_all(
    config: Config,
    fetch_context: FetchContext,
    usage_context: UsageContext,
    usage_filter: str | None = None,
    on_result: ProgressCallback | None = None,
) -> list[CheckResult]:
    """Check every dependency in *config*, in configuration order.

    With *usage_filter* only usages of that name are checked, and dependencies
    without such a usage are skipped. A name no dependency uses is a ConfigError.
    """
    names: list[str] = []
    jobs = []
    for name, entry in config.items():
        usages = entry.usages
        if usage_filter is not None:
            if usage_filter not in usages:
                continue
            usages = {usage_filter: usages[usage_filter]}
        names.append(name)
        jobs.append(_report(
            check_dependency(name, entry.upstream, usages, fetch_context, usage_context),
            on_result,
        ))

    if usage_filter is not None and not names:
        raise ConfigError(f"Usage {usage_filter} not found in config")

    done, failed = partition(names, await settle_all(jobs))
    results: list[CheckResult] = []
    for name in names:
        if name in done:
            results.append(done[name])
        else:
            logger.error("%s: check failed: %s", name, failed[name])
            results.append(CheckResult(name=name, upstream=None))
    return results


async def _report(job, on_result: ProgressCallback | None) -> CheckResult:
    result = await job
    if on_result is not None:
        on_result(result)
    return result
