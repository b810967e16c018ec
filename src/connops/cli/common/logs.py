"""Logging setup for the CLI.

Core modules log through `logging.getLogger(__name__)`; the CLI routes those
records through Rich so they share the console with tables and prompts.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from connops.cli.common.output import console


def configure_logging(verbose: bool = False) -> None:
    """Install a Rich handler on the `connops` logger (DEBUG when verbose)."""
    logger = logging.getLogger("connops")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.handlers.clear()
    logger.addHandler(
        RichHandler(console=console, show_path=verbose, rich_tracebacks=True)
    )
    logger.propagate = False
    if verbose:
        httpx_logger = logging.getLogger("httpx")
        httpx_logger.setLevel(logging.INFO)
        httpx_logger.handlers = list(logger.handlers)
        httpx_logger.propagate = False
