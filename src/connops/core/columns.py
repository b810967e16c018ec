"""Column derivation and cell formatting for the resource table.

Everything here is pure: the table is always recomputed from the fetched
records and the pinned fields, never patched.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Sequence

from connops.core.models import Record, ResourceRef, ValueKind, encode_value, value_kind

MAX_ID_LENGTH = 20
MAX_REFS_SHOWN = 3

_CAMEL_RE = re.compile(r"([a-z])([A-Z])")


def truncate_id(value: str, max_len: int = MAX_ID_LENGTH) -> str:
    """Cap an identifier at max_len characters, appending `...` when cut."""
    if len(value) <= max_len:
        return value
    return f"{value[:max_len]}..."


def is_meaningful(value: Any) -> bool:
    """A value counts as data unless it is null or an empty list."""
    if value is None:
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    return True


def has_field_value(records: Sequence[Record], field_name: str) -> bool:
    """Return True if at least one record has meaningful data for the field."""
    return any(is_meaningful(r.get(field_name)) for r in records)


def _column_sort_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def project_columns(records: Sequence[Record], pinned: Iterable[str]) -> list[str]:
    """
    Derive the ordered columns for a batch of records.

    A column is shown if it is pinned or if at least one record carries a
    meaningful value for it. Pinned columns come first; each group is sorted
    alphabetically (case-insensitive, raw text as tie-break).
    """
    pinned_set = set(pinned)

    potential: set[str] = set()
    for record in records:
        potential.update(record.fields.keys())

    shown = {
        name
        for name in potential
        if name in pinned_set or has_field_value(records, name)
    }
    shown.update(pinned_set)

    pinned_cols = sorted((c for c in shown if c in pinned_set), key=_column_sort_key)
    other_cols = sorted((c for c in shown if c not in pinned_set), key=_column_sort_key)
    return pinned_cols + other_cols


def format_column_name(column: str) -> str:
    """
    Format a field id for display.

    camelCase and snake_case are split into words and each word capitalized
    (e.g. `firstName` -> `First Name`, `first_name` -> `First Name`).
    """
    spaced = _CAMEL_RE.sub(r"\1 \2", column).replace("_", " ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in spaced.split(" "))


def format_field_value(value: Any) -> str:
    """Render a cell value as text."""
    kind = value_kind(value)
    if kind == ValueKind.NULL:
        return ""
    if kind == ValueKind.REFERENCE:
        return truncate_id(value.id)
    if kind == ValueKind.LIST:
        if not value:
            return ""
        if all(isinstance(item, ResourceRef) for item in value):
            ids = [truncate_id(item.id) for item in value]
            if len(ids) <= MAX_REFS_SHOWN:
                return ", ".join(ids)
            return f"{', '.join(ids[:MAX_REFS_SHOWN])}..."
        return json.dumps(encode_value(value), separators=(",", ":"))
    if kind == ValueKind.OBJECT:
        return json.dumps(encode_value(value), separators=(",", ":"))
    if kind == ValueKind.BOOL:
        return "true" if value else "false"
    return edit_text(value)


def edit_text(value: Any) -> str:
    """Serialized form of an editable value, as shown in the edit box."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
