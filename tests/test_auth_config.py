import pytest

from connops.core.auth import (
    AuthError,
    _sanitize_host,
    get_client,
    is_available_connector,
    require_secret_key,
    resolve_keys,
)
from connops.core.config import (
    DEFAULT_API_URL,
    DEFAULT_FIELD_CACHE_TTL_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEMO_PUBLIC_KEY,
    DEMO_SECRET_KEY,
    Settings,
    load_settings,
)
from connops.core.models import KeyPair


def test_load_settings_defaults():
    settings = load_settings({})

    assert settings.api_url == DEFAULT_API_URL
    assert settings.public_key is None
    assert settings.available_connectors == ("salesforce", "hubspot")
    assert settings.field_cache_ttl == DEFAULT_FIELD_CACHE_TTL_SECONDS
    assert settings.timeout == DEFAULT_TIMEOUT_SECONDS


def test_load_settings_reads_environment():
    settings = load_settings(
        {
            "CONNOPS_API_URL": "https://example.test/v1",
            "CONNOPS_PUBLIC_KEY": "pk_live",
            "CONNOPS_SECRET_KEY": "sk_live",
            "CONNOPS_AVAILABLE_CONNECTORS": " pipedrive, ,attio ",
            "CONNOPS_FIELD_CACHE_TTL": "60",
            "CONNOPS_TIMEOUT": "5.5",
        }
    )

    assert settings.api_url == "https://example.test/v1"
    assert settings.public_key == "pk_live"
    assert settings.secret_key == "sk_live"
    assert settings.available_connectors == ("pipedrive", "attio")
    assert settings.field_cache_ttl == 60
    assert settings.timeout == 5.5


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("abc", DEFAULT_FIELD_CACHE_TTL_SECONDS), ("-5", 0), ("0", 0)],
)
def test_load_settings_ttl_parsing(raw, expected):
    assert load_settings({"CONNOPS_FIELD_CACHE_TTL": raw}).field_cache_ttl == expected


@pytest.mark.parametrize("raw", ["abc", "0", "-1"])
def test_load_settings_invalid_timeout_falls_back(raw):
    assert load_settings({"CONNOPS_TIMEOUT": raw}).timeout == DEFAULT_TIMEOUT_SECONDS


@pytest.mark.parametrize(
    ("host", "expected"),
    [
        ("https://api.test/v0/", "https://api.test/v0"),
        ("https://api.test/v0?o=123", "https://api.test/v0"),
        ("https://api.test/v0//?x=1", "https://api.test/v0"),
        (None, None),
        ("", ""),
    ],
)
def test_sanitize_host(host, expected):
    assert _sanitize_host(host) == expected


def test_resolve_keys_uses_configured_pair_for_available_connector():
    settings = Settings(public_key="pk_live", secret_key="sk_live")

    keys = resolve_keys(settings, "hubspot")

    assert keys == KeyPair(public_key="pk_live", secret_key="sk_live", demo=False)
    assert is_available_connector(settings, "hubspot")


def test_resolve_keys_falls_back_to_demo_for_other_connectors():
    settings = Settings(public_key="pk_live", secret_key="sk_live")

    keys = resolve_keys(settings, "pipedrive")

    assert keys.demo is True
    assert keys.public_key == DEMO_PUBLIC_KEY
    assert keys.secret_key == DEMO_SECRET_KEY


def test_resolve_keys_falls_back_to_demo_without_public_key():
    assert resolve_keys(Settings(), "salesforce").demo is True


def test_require_secret_key():
    assert require_secret_key(KeyPair(public_key="pk", secret_key="sk")) == "sk"
    with pytest.raises(AuthError, match="CONNOPS_SECRET_KEY"):
        require_secret_key(KeyPair(public_key="pk"))


@pytest.mark.asyncio
async def test_get_client_uses_sanitized_base_url():
    client = get_client(Settings(api_url="https://api.test/v0/?o=1", timeout=3))
    try:
        assert str(client.base_url) == "https://api.test/v0/"
        assert client.timeout.read == 3
    finally:
        await client.aclose()


def test_get_client_rejects_empty_url():
    with pytest.raises(AuthError):
        get_client(Settings(api_url=""))
