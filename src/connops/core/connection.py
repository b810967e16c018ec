"""Session and connection status logic.

This module establishes a session for an owner/connector pair and reports
whether the resulting connection is authorized. It is the "host" that tells
the resource browser when a live connection exists.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Protocol

from connops.core.adapters.morph import ConnectorApiError
from connops.core.connectors import connector_name
from connops.core.models import ConnectionStatus

logger = logging.getLogger(__name__)

DEFAULT_SESSION_OPERATIONS = ("genericContact::retrieve",)


class SessionError(RuntimeError):
    """Raised when a session cannot be created; blocks the whole browsing surface."""


class SessionAdapter(Protocol):
    """Interface for session creation."""

    async def create_session(
        self, owner_id: str, connector_id: str, operations: Iterable[str] = ()
    ) -> str:
        """Create a session and return its token."""
        ...


class ConnectionAdapter(Protocol):
    """Interface for connection status lookups."""

    async def retrieve_connection(self) -> ConnectionStatus:
        """Return the status of the bound connection."""
        ...


@dataclass(frozen=True)
class ConnectionState:
    """What the host knows about the connection."""

    status: ConnectionStatus
    error: str | None = None

    @property
    def connected(self) -> bool:
        return self.status == ConnectionStatus.AUTHORIZED


def default_owner_id(now: float | None = None) -> str:
    """Return a throwaway owner id (`temp_<epoch millis>`)."""
    ts = time.time() if now is None else now
    return f"temp_{int(ts * 1000)}"


async def create_session(
    adapter: SessionAdapter,
    owner_id: str,
    connector_id: str,
    operations: Iterable[str] = DEFAULT_SESSION_OPERATIONS,
) -> str:
    """
    Create a session for an owner and connector.

    Raises:
        SessionError: if the remote API refuses or cannot be reached.
    """
    if not connector_id:
        raise SessionError("No connector id provided.")
    try:
        return await adapter.create_session(owner_id, connector_id, operations)
    except ConnectorApiError as exc:
        raise SessionError(f"Could not create session token: {exc.message}") from exc


async def check_connection(adapter: ConnectionAdapter) -> ConnectionState:
    """Retrieve the connection status; failures are reported as not connected."""
    try:
        status = await adapter.retrieve_connection()
    except ConnectorApiError as exc:
        logger.error("Error retrieving connection: %s", exc.message)
        return ConnectionState(status=ConnectionStatus.UNKNOWN, error=exc.message)
    return ConnectionState(status=status)


def unavailable_notice(connector_id: str) -> str:
    """Explain that a connector runs on mocked data in the playground."""
    name = connector_name(connector_id)
    return (
        f"{name} is using mocked data in the playground as it requires a private "
        "CLIENT_ID and CLIENT_SECRET. Try a playground-ready connector like "
        "Salesforce or HubSpot to test it live."
    )
