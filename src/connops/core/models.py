"""Core domain models for connector resources.

These models represent records, references and field metadata returned by the
remote connector API in a simple, immutable form. They are intentionally free
of HTTP and UI/CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

RESOURCE_REF_OBJECT = "resourceRef"


class ValueKind(str, Enum):
    """
    Closed set of value shapes a record field can hold.

    Values:
        NULL: Missing or explicit null value.
        BOOL: true/false.
        NUMBER: Integer or floating point number.
        STRING: Text value.
        REFERENCE: Pointer to another record (ResourceRef).
        LIST: List of values.
        OBJECT: Nested mapping of field name to value.
    """

    NULL = "NULL"
    BOOL = "BOOL"
    NUMBER = "NUMBER"
    STRING = "STRING"
    REFERENCE = "REFERENCE"
    LIST = "LIST"
    OBJECT = "OBJECT"


EDITABLE_KINDS = frozenset({ValueKind.NULL, ValueKind.NUMBER, ValueKind.STRING})


@dataclass(frozen=True)
class ResourceRef:
    """
    Cross-record pointer.

    Attributes:
        model: Model identifier of the target record.
        id: Identifier of the target record.
    """

    model: str
    id: str


def value_kind(value: Any) -> ValueKind:
    """Classify a field value. Raises TypeError for non JSON-like values."""
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, ResourceRef):
        return ValueKind.REFERENCE
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported field value type: {type(value).__name__}")


def is_editable(value: Any) -> bool:
    """Return True if a cell holding this value may enter editing."""
    return value_kind(value) in EDITABLE_KINDS


def _is_ref_payload(value: Mapping[str, Any]) -> bool:
    return (
        value.get("object") == RESOURCE_REF_OBJECT
        and isinstance(value.get("model"), str)
        and isinstance(value.get("id"), str)
    )


def decode_value(value: Any) -> Any:
    """Convert a wire value into the domain value shape (refs become ResourceRef)."""
    if isinstance(value, Mapping):
        if _is_ref_payload(value):
            return ResourceRef(model=value["model"], id=value["id"])
        return {str(k): decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def encode_value(value: Any) -> Any:
    """Inverse of decode_value, used when values are serialized back to JSON."""
    if isinstance(value, ResourceRef):
        return {"object": RESOURCE_REF_OBJECT, "model": value.model, "id": value.id}
    if isinstance(value, Mapping):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


@dataclass(frozen=True)
class Record:
    """
    A single record of a connector model.

    Attributes:
        id: Remote identifier of the record.
        fields: Mapping of field name to decoded value.
    """

    id: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Record":
        """Build a record from the `{"id": ..., "fields": {...}}` wire shape."""
        raw_fields = payload.get("fields") or {}
        if not isinstance(raw_fields, Mapping):
            raise ValueError(f"Record {payload.get('id')!r} has malformed fields.")
        return cls(
            id=str(payload.get("id", "")),
            fields={str(k): decode_value(v) for k, v in raw_fields.items()},
        )

    def get(self, name: str) -> Any:
        """Return the value of a field, or None when the record does not carry it."""
        return self.fields.get(name)


@dataclass(frozen=True)
class FieldDescriptor:
    """Metadata for one field of a model."""

    id: str
    type: str = "text"
    name: str | None = None
    display_name: str | None = None
    description: str | None = None
    required: bool | None = None
    is_custom: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FieldDescriptor":
        """Parse a camelCase field descriptor payload."""
        field_id = payload.get("id")
        if not isinstance(field_id, str) or not field_id:
            raise ValueError("Field descriptor without an id.")
        required = payload.get("required")
        return cls(
            id=field_id,
            type=str(payload.get("type") or "text"),
            name=payload.get("name") or None,
            display_name=payload.get("displayName") or None,
            description=payload.get("description") or None,
            required=bool(required) if required is not None else None,
            is_custom=bool(payload.get("isCustom", False)),
        )


class ConnectionStatus(str, Enum):
    """Authorization status of a connection as reported by the remote API."""

    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "ConnectionStatus":
        """Map a remote status string onto the enum (unknown values -> UNAUTHORIZED)."""
        if raw == cls.AUTHORIZED.value:
            return cls.AUTHORIZED
        if raw is None:
            return cls.UNKNOWN
        return cls.UNAUTHORIZED


@dataclass(frozen=True)
class KeyPair:
    """Public/secret key pair used to talk to the remote API."""

    public_key: str
    secret_key: str | None = None
    demo: bool = False
