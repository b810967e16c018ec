"""Model discovery for an authorized connection."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from connops.core.adapters.morph import ConnectorApiError

logger = logging.getLogger(__name__)

LIST_OPERATION = "list"
_SEPARATOR = "::"


class CapabilitiesAdapter(Protocol):
    """Interface for listing connector capabilities."""

    async def list_operations(self) -> list[str]:
        """Return `<model>::<verb>` capability strings."""
        ...


def models_with_list_operations(operations: Iterable[str]) -> list[str]:
    """
    Return the models that support listing.

    A capability contributes its model segment when its operation segment is
    exactly `list`. Order follows first occurrence; duplicates are dropped.
    """
    models: list[str] = []
    seen: set[str] = set()
    for op in operations:
        model, sep, verb = op.rpartition(_SEPARATOR)
        if not sep or not model or verb != LIST_OPERATION:
            continue
        if model in seen:
            continue
        seen.add(model)
        models.append(model)
    return models


async def discover_models(adapter: CapabilitiesAdapter) -> list[str]:
    """List models with a list operation; any remote failure yields []."""
    try:
        operations = await adapter.list_operations()
    except ConnectorApiError as exc:
        logger.error("Error listing connector operations: %s", exc.message)
        return []
    return models_with_list_operations(operations)
