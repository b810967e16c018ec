from __future__ import annotations

import re

import typer

from connops.cli.common.exits import EXIT_USAGE, warn_exit
from connops.cli.common.output import out
from connops.core.config import load_settings
from connops.core.connectors import CONNECTORS


def connectors_list(
    name: str | None = typer.Option(
        None, "--name", help="Regex filter on connector id or label"
    ),
    live: bool = typer.Option(
        False, "--live", help="Only show connectors configured with real keys"
    ),
):
    """List known connectors and whether they run live or on demo keys."""
    settings = load_settings()
    connectors = list(CONNECTORS)

    if name:
        try:
            rx = re.compile(name, re.IGNORECASE)
        except re.error as exc:
            out.error(f"Invalid regex for --name: {exc}")
            raise typer.Exit(EXIT_USAGE) from exc
        connectors = [c for c in connectors if rx.search(c.id) or rx.search(c.label)]

    if live:
        connectors = [c for c in connectors if c.id in settings.available_connectors]

    if not connectors:
        warn_exit("No connectors found.")

    out.connectors_table(connectors, settings.available_connectors)
