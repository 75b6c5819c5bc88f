"""versioncheck versions <name> - List available upstream versions."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from versioncheck.cli.options import NameArgument, OutputOption
from versioncheck.cli.runtime import GlobalOptions, fail, open_runtime
from versioncheck.config.schema import FetchSpec
from versioncheck.core.fetchers import fetch_version
from versioncheck.errors import VersionCheckError
from versioncheck.models import FetchResult
from versioncheck.output.formatters import output_versions

app = typer.Typer()


async def _fetch(opts: GlobalOptions, spec: FetchSpec) -> FetchResult:
    async with open_runtime(opts, None) as runtime:
        return await fetch_version(spec, runtime.fetch)


@app.callback(invoke_without_command=True)
def versions(
    ctx: typer.Context,
    name: str = NameArgument,
    version_spec: Optional[str] = typer.Argument(None, help="Only list versions satisfying this range"),
    output: str = OutputOption,
) -> None:
    """List every upstream candidate, newest first."""
    opts: GlobalOptions = ctx.obj
    try:
        entry = opts.load_config().entry(name)
        result = asyncio.run(_fetch(opts, entry.upstream))
        if result.versions is None:
            raise fail(f"Could not find versions for {name}")
        listed = result.versions
        if version_spec:
            listed = [v for v in listed if v.satisfies(version_spec)]
    except VersionCheckError as exc:
        raise fail(exc)

    output_versions(name, result, listed, output)
