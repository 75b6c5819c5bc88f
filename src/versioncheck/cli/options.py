"""Shared CLI options."""

from __future__ import annotations

import typer

from versioncheck.config.settings import settings

OutputOption = typer.Option(settings.default_output, "--output", "-o", help="Output format: table, json, yaml")
NameArgument = typer.Argument(help="Dependency name from the config file")
