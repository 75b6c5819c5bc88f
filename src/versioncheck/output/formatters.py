"""Table / JSON / YAML output dispatch."""

from __future__ import annotations

import json
from typing import Any

import yaml
from rich.console import Console

from versioncheck.models import CheckResult, FetchResult
from versioncheck.models.version import Version

console = Console()


def _version_to_dict(v: Version) -> dict[str, Any]:
    data: dict[str, Any] = {"version": v.main, "kind": v.kind.value}
    if v.app:
        data["app_version"] = v.app
    return data


def _upstream_to_dict(u: FetchResult | None) -> dict[str, Any] | None:
    if u is None:
        return None
    data = _version_to_dict(u.version)
    if u.latest is not None:
        data["latest"] = u.latest.main
    return data


def _check_to_dict(r: CheckResult) -> dict[str, Any]:
    return {
        "name": r.name,
        "upstream": _upstream_to_dict(r.upstream),
        "usages": {
            key: {**_version_to_dict(v), "status": r.status_of(key).value}
            for key, v in r.usages.items()
        },
        "outdated": {key: _version_to_dict(v) for key, v in r.outdated.items()},
        "errored": list(r.errored),
    }


def _emit(data: Any, fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps(data, indent=2))
    else:
        console.print(yaml.dump(data, default_flow_style=False, sort_keys=False))


def output_check(results: list[CheckResult], fmt: str) -> None:
    if fmt in ("json", "yaml"):
        _emit([_check_to_dict(r) for r in results], fmt)
    else:
        from versioncheck.output.tables import check_table
        console.print(check_table(results))


def output_versions(name: str, result: FetchResult, versions: list[Version], fmt: str) -> None:
    if fmt in ("json", "yaml"):
        _emit(
            {
                "name": name,
                "current": result.version.main,
                "versions": [_version_to_dict(v) for v in versions],
            },
            fmt,
        )
    else:
        from versioncheck.output.tables import versions_table
        console.print(versions_table(name, versions, current=result.version))
