"""Rich table builders for each command."""

from __future__ import annotations

from rich.table import Table

from versioncheck.models import CheckResult, FetchResult, UsageStatus
from versioncheck.models.version import Version
from versioncheck.output.themes import styled_status, styled_version


def _upstream_text(upstream: FetchResult) -> str:
    if upstream.latest is None or not upstream.behind_latest:
        return styled_version(upstream.version, "green")
    return f"{styled_version(upstream.version, 'yellow')} (latest: {styled_version(upstream.latest, 'green')})"


def _status_cell(result: CheckResult) -> Table | str:
    rows: list[tuple[str, str]] = [
        (key, styled_version(version, "yellow")) for key, version in result.outdated.items()
    ]
    rows.extend((key, styled_status(UsageStatus.ERROR)) for key in result.errored)
    if not rows:
        return styled_status(UsageStatus.UP_TO_DATE)

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Usage", style="cyan", no_wrap=True)
    table.add_column("Version")
    for key, text in rows:
        table.add_row(key, text)
    return table


def check_table(results: list[CheckResult]) -> Table:
    table = Table(title="Version Check", expand=True, show_lines=True)
    table.add_column("Name", style="bold white", no_wrap=True)
    table.add_column("Upstream")
    table.add_column("Status")

    for result in results:
        if result.upstream is None:
            table.add_row(result.name, styled_status(UsageStatus.ERROR), "")
        else:
            table.add_row(result.name, _upstream_text(result.upstream), _status_cell(result))
    return table


def versions_table(name: str, versions: list[Version], current: Version | None = None) -> Table:
    table = Table(title=f"Versions: {name}", expand=False)
    table.add_column("Version", style="magenta", no_wrap=True)
    table.add_column("App Ver", style="cyan")
    table.add_column("", no_wrap=True)

    for version in versions:
        marker = "[green]current[/green]" if current is not None and version.main == current.main else ""
        table.add_row(version.main, version.app or "", marker)
    return table
