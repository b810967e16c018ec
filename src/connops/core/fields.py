"""Field metadata retrieval with a time-boxed, per-session cache.

Field descriptors are enrichment (header labels, the field picker), not the
critical path: every failure here degrades to an empty list.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from connops.core.adapters.morph import ConnectorApiError
from connops.core.columns import format_column_name
from connops.core.config import DEFAULT_FIELD_CACHE_TTL_SECONDS
from connops.core.models import FieldDescriptor

logger = logging.getLogger(__name__)


class FieldsAdapter(Protocol):
    """Interface for field metadata lookups."""

    async def list_fields(self, model_id: str) -> list[FieldDescriptor]:
        """Return the field descriptors of a model."""
        ...


@dataclass(frozen=True)
class FieldCacheEntry:
    """Cached field list for one (connector, model) pair."""

    fetched_at: float
    fields: tuple[FieldDescriptor, ...]


class FieldMetadataCache:
    """
    Two-level cache: connector id -> model id -> entry.

    Entries are reusable while `now - fetched_at < ttl`. Expired entries are
    dropped on read; nothing else evicts them.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_FIELD_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, dict[str, FieldCacheEntry]] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, connector_id: str, model_id: str) -> list[FieldDescriptor] | None:
        """Return fresh cached fields, or None when absent or expired."""
        by_model = self._entries.get(connector_id)
        if not by_model:
            return None
        entry = by_model.get(model_id)
        if entry is None:
            return None
        if self.now() - entry.fetched_at >= self.ttl_seconds:
            del by_model[model_id]
            return None
        return list(entry.fields)

    def put(
        self,
        connector_id: str,
        model_id: str,
        fields: Iterable[FieldDescriptor],
    ) -> None:
        """Store (or overwrite) the entry for a pair, stamped with the current time."""
        self._entries.setdefault(connector_id, {})[model_id] = FieldCacheEntry(
            fetched_at=self.now(),
            fields=tuple(fields),
        )

    def invalidate(self, connector_id: str, model_id: str | None = None) -> None:
        """Forget one model's entry, or every entry of a connector."""
        if model_id is None:
            self._entries.pop(connector_id, None)
            return
        self._entries.get(connector_id, {}).pop(model_id, None)

    def __len__(self) -> int:
        return sum(len(by_model) for by_model in self._entries.values())


async def get_fields(
    adapter: FieldsAdapter,
    cache: FieldMetadataCache,
    connector_id: str,
    model_id: str,
    *,
    use_cache: bool = True,
) -> list[FieldDescriptor]:
    """
    Return the field descriptors of a model, cache-first.

    Args:
        adapter: Connector adapter used on a cache miss.
        cache: Cache owned by the calling browser session.
        connector_id: Connector the model belongs to (first cache key).
        model_id: Model whose fields are requested (second cache key).
        use_cache: When False, always hit the remote API (and refresh the entry).

    Returns:
        The field descriptors, or an empty list if the remote call failed.
    """
    if use_cache:
        cached = cache.get(connector_id, model_id)
        if cached is not None:
            return cached

    try:
        fields = await adapter.list_fields(model_id)
    except ConnectorApiError as exc:
        logger.error("Error fetching fields for %s/%s: %s", connector_id, model_id, exc.message)
        return []

    cache.put(connector_id, model_id, fields)
    return list(fields)


def field_label(fields: Iterable[FieldDescriptor], field_id: str) -> str:
    """Header label for a column: name, then display name, then the formatted id."""
    for f in fields:
        if f.id == field_id:
            return f.name or f.display_name or format_column_name(field_id)
    return format_column_name(field_id)


def field_description(fields: Iterable[FieldDescriptor], field_id: str) -> str:
    """Return the description of a field, or an empty string."""
    for f in fields:
        if f.id == field_id:
            return f.description or ""
    return ""


def split_unpinned_fields(
    fields: Iterable[FieldDescriptor],
    pinned: Iterable[str],
) -> tuple[list[FieldDescriptor], list[FieldDescriptor]]:
    """Return (custom, system) fields that are not pinned yet, in catalog order."""
    pinned_set = set(pinned)
    unused = [f for f in fields if f.id not in pinned_set]
    custom = [f for f in unused if f.is_custom]
    system = [f for f in unused if not f.is_custom]
    return custom, system
