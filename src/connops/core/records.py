"""Record listing and single-field updates.

Listing never raises: remote failures come back as a FetchResult error so the
caller can show them next to the table. Updates do raise, because the inline
editor owns the per-cell failure handling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from connops.core.adapters.morph import ConnectorApiError
from connops.core.models import Record

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 3


class RecordsAdapter(Protocol):
    """Interface for record listing and mutation."""

    async def list_records(
        self, model_id: str, *, limit: int, fields: list[str] | None = None
    ) -> list[Record]:
        """Return up to `limit` records of a model."""
        ...

    async def update_record_field(
        self, model_id: str, record_id: str, field: str, value: Any
    ) -> None:
        """Update one field of one record."""
        ...


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a record listing."""

    records: list[Record] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def clamp_limit(limit: Any) -> int:
    """Coerce a user-entered page size to an int >= 1 (garbage -> 1)."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return 1
    return max(1, value)


async def list_records(
    adapter: RecordsAdapter,
    model_id: str,
    limit: int,
    fields: list[str] | None = None,
) -> FetchResult:
    """
    List records of a model.

    Args:
        adapter: Connector adapter.
        model_id: Model to list.
        limit: Page size, clamped to at least 1.
        fields: Explicit projection; ignored when empty.

    Returns:
        FetchResult with the records, or with an error message.
    """
    projection = list(fields) if fields else None
    try:
        records = await adapter.list_records(
            model_id, limit=clamp_limit(limit), fields=projection
        )
    except ConnectorApiError as exc:
        logger.error("Error listing %s: %s", model_id, exc.message)
        return FetchResult(error=exc.message or f"Failed to load {model_id}")
    return FetchResult(records=list(records))


async def update_record_field(
    adapter: RecordsAdapter,
    model_id: str,
    record_id: str,
    field: str,
    value: Any,
) -> None:
    """Submit a single-field update. Raises ConnectorApiError on failure."""
    logger.info("Updating %s/%s field %s", model_id, record_id, field)
    await adapter.update_record_field(model_id, record_id, field, value)
