"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from versioncheck.cli.runtime import GlobalOptions
from versioncheck.config.settings import settings

app = typer.Typer(
    name="versioncheck",
    help="versioncheck - Find pinned dependency versions that drifted from upstream.",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Path = typer.Option(settings.config_file, "--config", "-c", help="Path to config file"),
    paths: Optional[Path] = typer.Option(None, "--paths", "-p", help="Path to paths mapping file"),
    cache: Path = typer.Option(settings.cache_file, "--cache", help="Path to the fetch cache database"),
    token: Optional[List[str]] = typer.Option(
        None, "--token", "-t", help="GitHub token, either TOKEN or OWNER=TOKEN (repeatable)",
    ),
    update: bool = typer.Option(False, "--update", "-u", help="Fetch new upstream versions"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    _configure_logging(verbose)
    ctx.obj = GlobalOptions(
        config=config,
        paths=paths,
        cache=cache,
        tokens=list(token or []),
        update=update,
    )


def _register_commands() -> None:
    from versioncheck.cli.commands.check_cmd import app as check_app
    from versioncheck.cli.commands.versions_cmd import app as versions_app
    from versioncheck.cli.commands.path_cmd import app as path_app

    app.add_typer(check_app, name="check", help="Check versions")
    app.add_typer(versions_app, name="versions", help="List available versions")
    app.add_typer(path_app, name="path", help="Resolve a usage's local path")


_register_commands()


def main() -> None:
    app()
