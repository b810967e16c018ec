"""Application context management for the CLI."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from connops.cli.common.exits import EXIT_USAGE, die
from connops.core.adapters.morph import MorphAdapter
from connops.core.auth import AuthError, get_client, resolve_keys
from connops.core.config import Settings, load_settings
from connops.core.connectors import find_connector
from connops.core.models import KeyPair


@dataclass
class ConnectorAppContext:
    """Application context holding settings and the key pair for one connector."""

    settings: Settings
    connector_id: str
    keys: KeyPair


def build_context(connector_id: str, *, settings: Settings | None = None) -> ConnectorAppContext:
    """Build the application context for a connector.

    Args:
        connector_id: Connector the command works against.
        settings: Explicit settings (defaults to the environment).

    Returns:
        ConnectorAppContext with the resolved key pair.
    """
    if not connector_id:
        die("No connector id provided.", code=EXIT_USAGE)
    if find_connector(connector_id) is None:
        die(f"Unknown connector '{connector_id}'. See `connops connectors`.", code=EXIT_USAGE)
    settings = settings or load_settings()
    return ConnectorAppContext(
        settings=settings,
        connector_id=connector_id,
        keys=resolve_keys(settings, connector_id),
    )


@asynccontextmanager
async def open_adapter(
    appctx: ConnectorAppContext,
    session_token: str | None = None,
) -> AsyncIterator[MorphAdapter]:
    """Open an HTTP client for the duration of one command and yield the adapter."""
    try:
        client = get_client(appctx.settings)
    except AuthError as exc:
        die(str(exc), code=1)
    try:
        yield MorphAdapter(client, appctx.keys, session_token=session_token)
    finally:
        await client.aclose()
