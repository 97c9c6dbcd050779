"""Shared serialization utilities for senders and stores."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from prime_crm.models.enums import DocumentStatus, StageId
from prime_crm.models.process import Document, Process, extra_fields_from_list


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def to_dict(obj: Any) -> dict:
    """Convert a dataclass (or mapping) to a JSON-ready dictionary.

    Uses ``dataclasses.fields()`` + ``getattr`` rather than ``asdict()`` so
    nested values go through ``serialize_value`` exactly once.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, dict):
        return serialize_value(obj)
    else:
        return {"value": str(obj)}


def process_to_dict(process: Process) -> dict[str, Any]:
    """Serialize a process in the document-store layout.

    Extra fields are kept as a label -> value map and documents are embedded.
    """
    return to_dict(process)


def _parse_datetime(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw))


def document_from_dict(data: Mapping[str, Any]) -> Document:
    return Document(
        id=str(data["id"]),
        name=str(data["name"]),
        status=DocumentStatus(data.get("status") or DocumentStatus.PENDING),
        url=data.get("url"),
        uploaded_at=_parse_datetime(data.get("uploaded_at")),
        feedback=data.get("feedback"),
        is_extra=bool(data.get("is_extra", False)),
    )


def process_from_dict(data: Mapping[str, Any]) -> Process:
    """Rebuild a process from its serialized form.

    Accepts extra fields either as a label -> value map or as a list of
    ``{"label": ..., "value": ...}`` entries.
    """
    raw_fields = data.get("extra_fields") or {}
    if isinstance(raw_fields, Mapping):
        extra_fields = {str(k): "" if v is None else str(v) for k, v in raw_fields.items()}
    else:
        extra_fields = extra_fields_from_list(raw_fields)

    return Process(
        id=str(data["id"]),
        client_name=str(data.get("client_name") or ""),
        type=str(data.get("type") or ""),
        value=Decimal(str(data.get("value") or "0")),
        status=StageId(data["status"]),
        created_at=_parse_datetime(data["created_at"]),
        updated_at=_parse_datetime(data.get("updated_at") or data["created_at"]),
        client_id=data.get("client_id"),
        client_email=data.get("client_email"),
        client_cpf=data.get("client_cpf"),
        attendant_id=data.get("attendant_id"),
        extra_fields=extra_fields,
        documents=[document_from_dict(doc) for doc in data.get("documents") or []],
        has_unread=bool(data.get("has_unread", False)),
    )
