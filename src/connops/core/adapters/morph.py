from __future__ import annotations

import logging
from typing import Any, Iterable
from urllib.parse import quote

import httpx

from connops.core.models import (
    ConnectionStatus,
    FieldDescriptor,
    KeyPair,
    Record,
    encode_value,
)

logger = logging.getLogger(__name__)


class ConnectorApiError(RuntimeError):
    """Raised when the connector API rejects a call or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


def _segment(value: str) -> str:
    """Escape one URL path segment so ids cannot change the request target."""
    return quote(str(value), safe="")


def _as_list(data: Any) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConnectorApiError("Connector API returned an unexpected payload.")
    return data


def _error_from_response(response: httpx.Response) -> ConnectorApiError:
    """Build a ConnectorApiError from a failed response, preferring the API's own message."""
    code = None
    message = f"Connector API returned HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        err = body["error"]
        code = err.get("code")
        message = err.get("message") or message
    return ConnectorApiError(message, code=code, status=response.status_code)


class MorphAdapter:
    """Adapter around the hosted connector API (sessions, connection, models, resources)."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        keys: KeyPair,
        session_token: str | None = None,
    ) -> None:
        self.client = client
        self.keys = keys
        self.session_token = session_token

    def with_session(self, session_token: str) -> "MorphAdapter":
        """Return an adapter bound to a session token, sharing the HTTP client."""
        return MorphAdapter(self.client, self.keys, session_token=session_token)

    def _headers(self, *, secret: bool = False) -> dict[str, str]:
        headers = {"x-public-key": self.keys.public_key}
        if secret:
            if not self.keys.secret_key:
                raise ConnectorApiError("Secret key required for this call.")
            headers["x-secret-key"] = self.keys.secret_key
        elif self.session_token:
            headers["authorization"] = f"Bearer {self.session_token}"
        return headers

    async def _call(
        self,
        method: str,
        path: str,
        *,
        secret: bool = False,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and return the `data` member of the response envelope."""
        if not secret and not self.session_token:
            raise ConnectorApiError("No session token; create a session first.")
        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = await self.client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(secret=secret),
            )
        except httpx.HTTPError as exc:
            raise ConnectorApiError(f"Connector API unreachable: {exc}") from exc

        if response.is_error:
            raise _error_from_response(response)

        try:
            body = response.json()
        except ValueError as exc:
            raise ConnectorApiError(
                "Connector API returned a non-JSON response.",
                status=response.status_code,
            ) from exc

        if isinstance(body, dict) and body.get("error"):
            err = body["error"]
            if isinstance(err, dict):
                raise ConnectorApiError(
                    err.get("message") or "Connector API call failed.",
                    code=err.get("code"),
                    status=response.status_code,
                )
            raise ConnectorApiError(str(err), status=response.status_code)

        return body.get("data") if isinstance(body, dict) else body

    async def create_session(
        self,
        owner_id: str,
        connector_id: str,
        operations: Iterable[str] = (),
    ) -> str:
        """Create a connection session for an owner and return its session token."""
        data = await self._call(
            "POST",
            "/sessions",
            secret=True,
            json={
                "connection": {
                    "connectorId": connector_id,
                    "ownerId": owner_id,
                    "operations": list(operations),
                }
            },
        )
        token = data.get("sessionToken") if isinstance(data, dict) else None
        if not token:
            raise ConnectorApiError("Session response did not include a session token.")
        return str(token)

    async def retrieve_connection(self) -> ConnectionStatus:
        """Return the authorization status of the bound connection."""
        data = await self._call("GET", "/connection")
        status = data.get("status") if isinstance(data, dict) else None
        return ConnectionStatus.parse(status)

    async def list_operations(self) -> list[str]:
        """List `<model>::<verb>` capabilities declared by the connector."""
        data = await self._call("GET", "/connection/operations")
        operations = data.get("operations") if isinstance(data, dict) else data
        return [str(op) for op in _as_list(operations)]

    async def list_fields(self, model_id: str) -> list[FieldDescriptor]:
        """List field descriptors for a model."""
        data = await self._call("GET", f"/models/{_segment(model_id)}/fields")
        out: list[FieldDescriptor] = []
        for item in _as_list(data):
            try:
                out.append(FieldDescriptor.from_payload(item))
            except (AttributeError, ValueError):
                logger.debug("Skipping malformed field descriptor for %s: %r", model_id, item)
                continue
        return out

    async def list_records(
        self,
        model_id: str,
        *,
        limit: int,
        fields: list[str] | None = None,
    ) -> list[Record]:
        """List records of a model with a page size and optional projection."""
        params: dict[str, Any] = {"limit": limit}
        if fields:
            params["fields"] = ",".join(fields)
        data = await self._call("GET", f"/resources/{_segment(model_id)}", params=params)
        out: list[Record] = []
        for item in _as_list(data):
            try:
                out.append(Record.from_payload(item))
            except (AttributeError, ValueError):
                logger.debug("Skipping malformed record for %s: %r", model_id, item)
                continue
        return out

    async def update_record_field(
        self,
        model_id: str,
        record_id: str,
        field: str,
        value: Any,
    ) -> None:
        """Update a single field on a record."""
        await self._call(
            "PATCH",
            f"/resources/{_segment(model_id)}/{_segment(record_id)}",
            json={"fields": {field: encode_value(value)}},
        )
