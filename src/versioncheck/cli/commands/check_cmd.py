"""versioncheck check - Compare every usage against its upstream."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console

from versioncheck.cli.options import OutputOption
from versioncheck.cli.runtime import GlobalOptions, fail, open_runtime
from versioncheck.config.schema import Config, PathsConfig
from versioncheck.core.checker import check_all
from versioncheck.errors import VersionCheckError
from versioncheck.models import CheckResult
from versioncheck.output.formatters import output_check

app = typer.Typer()
console = Console(stderr=True)


async def _run(
    opts: GlobalOptions,
    config: Config,
    paths: PathsConfig | None,
    usage: str | None,
    on_result,
) -> list[CheckResult]:
    async with open_runtime(opts, paths) as runtime:
        return await check_all(config, runtime.fetch, runtime.usage, usage_filter=usage, on_result=on_result)


@app.callback(invoke_without_command=True)
def check(
    ctx: typer.Context,
    output: str = OutputOption,
    outdated: bool = typer.Option(False, "--outdated", help="Only show dependencies that are outdated or errored"),
    usage: Optional[str] = typer.Option(None, "--usage", help="Only check usages with this name"),
) -> None:
    """Check all tracked dependencies for version drift."""
    opts: GlobalOptions = ctx.obj
    try:
        config = opts.load_config()
        paths = opts.load_paths()
    except VersionCheckError as exc:
        raise fail(exc)

    if opts.update:
        console.print("[dim]Fetching upstream…[/dim]")

    total = len(config.root)
    with console.status("[bold cyan]Checking versions…") as status:
        finished: list[str] = []

        def on_result(result: CheckResult) -> None:
            finished.append(result.name)
            status.update(f"[bold cyan]Checking versions… [dim]({len(finished)}/{total})[/dim] {result.name}")

        try:
            results = asyncio.run(_run(opts, config, paths, usage, on_result))
        except VersionCheckError as exc:
            raise fail(exc)

    if outdated:
        results = [r for r in results if not r.ok or r.is_outdated]

    output_check(results, output)

    if any(not r.ok for r in results):
        raise typer.Exit(code=1)
