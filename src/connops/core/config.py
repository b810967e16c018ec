"""Environment-driven settings for connops.

All configuration is read from environment variables so the same settings
work for the CLI, automation and tests (which pass an explicit mapping).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

API_URL_ENV = "CONNOPS_API_URL"
PUBLIC_KEY_ENV = "CONNOPS_PUBLIC_KEY"
SECRET_KEY_ENV = "CONNOPS_SECRET_KEY"
AVAILABLE_CONNECTORS_ENV = "CONNOPS_AVAILABLE_CONNECTORS"
FIELD_CACHE_TTL_ENV = "CONNOPS_FIELD_CACHE_TTL"
TIMEOUT_ENV = "CONNOPS_TIMEOUT"

DEFAULT_API_URL = "https://api.runmorph.dev/v0"
DEFAULT_AVAILABLE_CONNECTORS = ("salesforce", "hubspot")
DEFAULT_FIELD_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_TIMEOUT_SECONDS = 30.0

DEMO_PUBLIC_KEY = "pk_demo_xxxxxxxxxxxxxxx"
DEMO_SECRET_KEY = "sk_demo_xxxxxxxxxxxxxxx"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""

    api_url: str = DEFAULT_API_URL
    public_key: str | None = None
    secret_key: str | None = None
    available_connectors: tuple[str, ...] = field(
        default=DEFAULT_AVAILABLE_CONNECTORS
    )
    field_cache_ttl: int = DEFAULT_FIELD_CACHE_TTL_SECONDS
    timeout: float = DEFAULT_TIMEOUT_SECONDS


def _parse_connectors(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_AVAILABLE_CONNECTORS
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _parse_ttl(raw: str | None) -> int:
    """Return cache TTL in seconds; invalid values fall back to the default."""
    if raw is None:
        return DEFAULT_FIELD_CACHE_TTL_SECONDS
    try:
        return max(int(raw), 0)
    except ValueError:
        return DEFAULT_FIELD_CACHE_TTL_SECONDS


def _parse_timeout(raw: str | None) -> float:
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the process environment (or an explicit mapping)."""
    env = os.environ if environ is None else environ
    return Settings(
        api_url=env.get(API_URL_ENV) or DEFAULT_API_URL,
        public_key=env.get(PUBLIC_KEY_ENV) or None,
        secret_key=env.get(SECRET_KEY_ENV) or None,
        available_connectors=_parse_connectors(env.get(AVAILABLE_CONNECTORS_ENV)),
        field_cache_ttl=_parse_ttl(env.get(FIELD_CACHE_TTL_ENV)),
        timeout=_parse_timeout(env.get(TIMEOUT_ENV)),
    )
