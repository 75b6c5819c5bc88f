"""versioncheck path <name> <usage> - Print a usage's local file path."""

from __future__ import annotations

import typer

from versioncheck.cli.options import NameArgument
from versioncheck.cli.runtime import GlobalOptions, fail
from versioncheck.core.usage import usage_local_path
from versioncheck.errors import VersionCheckError

app = typer.Typer()


@app.callback(invoke_without_command=True)
def path(
    ctx: typer.Context,
    name: str = NameArgument,
    usage: str = typer.Argument(help="Usage name within the dependency"),
) -> None:
    """Resolve where a usage lives on the local filesystem."""
    opts: GlobalOptions = ctx.obj
    try:
        entry = opts.load_config().entry(name)
        spec = entry.usages.get(usage)
        if spec is None:
            raise fail(f"Usage {usage} not found for {name}")
        typer.echo(usage_local_path(spec, opts.load_paths()))
    except VersionCheckError as exc:
        raise fail(exc)
