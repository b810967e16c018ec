"""Key resolution and HTTP client construction for the connector API.

This module centralizes which key pair is used for a connector and the
creation of the shared httpx client, and applies small normalization rules
(such as sanitizing the API URL) to avoid malformed request URLs.
"""

from __future__ import annotations

import httpx

from connops.core.config import DEMO_PUBLIC_KEY, DEMO_SECRET_KEY, Settings
from connops.core.models import KeyPair


class AuthError(RuntimeError):
    """Raised when no usable credentials are configured."""


def _sanitize_host(host: str | None) -> str | None:
    """
    Normalize an API base URL.

    - Removes query strings (e.g. '?o=123456789')
    - Removes trailing slashes
    """
    if not host:
        return host
    host = host.split("?", 1)[0]
    return host.rstrip("/")


def is_available_connector(settings: Settings, connector_id: str) -> bool:
    """Return True if the connector is fully configured with real keys."""
    return connector_id in settings.available_connectors


def resolve_keys(settings: Settings, connector_id: str) -> KeyPair:
    """
    Pick the key pair for a connector.

    Allow-listed connectors use the configured keys (falling back to the demo
    pair when unset); every other connector runs on the demo pair.
    """
    if not is_available_connector(settings, connector_id):
        return KeyPair(public_key=DEMO_PUBLIC_KEY, secret_key=DEMO_SECRET_KEY, demo=True)
    if not settings.public_key:
        return KeyPair(public_key=DEMO_PUBLIC_KEY, secret_key=DEMO_SECRET_KEY, demo=True)
    return KeyPair(
        public_key=settings.public_key,
        secret_key=settings.secret_key,
        demo=False,
    )


def require_secret_key(keys: KeyPair) -> str:
    """Return the secret key or raise AuthError (session creation is server-side only)."""
    if not keys.secret_key:
        raise AuthError(
            "Session creation requires a secret key.\n"
            "Set it with:\n  $ export CONNOPS_SECRET_KEY=sk_..."
        )
    return keys.secret_key


def get_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create and return a configured async HTTP client for the connector API.

    The base URL is sanitized to remove query strings and trailing slashes
    before constructing the client.
    """
    base_url = _sanitize_host(settings.api_url)
    if not base_url:
        raise AuthError("CONNOPS_API_URL is empty.")
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=settings.timeout,
        headers={"accept": "application/json"},
        transport=transport,
    )
