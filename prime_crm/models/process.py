"""Process and document models for the financing pipeline."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Mapping

from prime_crm.models.enums import DocumentStatus, StageId

STARTER_CHECKLIST = (
    "RG e CPF",
    "Comprovante de Renda",
    "Comprovante de Residência",
)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class CustomField:
    """One label/value entry of a process's extra fields."""

    label: str
    value: str


@dataclass
class Document:
    """Checklist item attached to a process."""

    id: str
    name: str
    status: DocumentStatus = DocumentStatus.PENDING
    url: str | None = None
    uploaded_at: datetime | None = None
    feedback: str | None = None  # rejection reason, only meaningful when rejected
    is_extra: bool = False


@dataclass
class Process:
    """One mortgage-financing case."""

    id: str
    client_name: str
    type: str
    value: Decimal
    status: StageId
    created_at: datetime
    updated_at: datetime
    client_id: str | None = None  # None until the client registers an account
    client_email: str | None = None
    client_cpf: str | None = None
    attendant_id: str | None = None
    extra_fields: dict[str, str] = field(default_factory=dict)
    documents: list[Document] = field(default_factory=list)
    has_unread: bool = False

    def get_field(self, label: str) -> str | None:
        """Return an extra field value, or None when absent or blank."""
        value = self.extra_fields.get(label)
        if value is None or not value.strip():
            return None
        return value

    def find_document(self, doc_id: str) -> Document | None:
        for doc in self.documents:
            if doc.id == doc_id:
                return doc
        return None

    @property
    def first_name(self) -> str:
        return self.client_name.split(" ")[0] if self.client_name else ""


def new_document_id() -> str:
    """Generate a unique checklist item id."""
    return f"doc_{uuid.uuid4().hex[:12]}"


def starter_documents() -> list[Document]:
    """Build the fixed checklist every new process starts with."""
    return [
        Document(id=f"doc{i}", name=name)
        for i, name in enumerate(STARTER_CHECKLIST, start=1)
    ]


def extra_fields_to_list(fields: Mapping[str, str]) -> list[CustomField]:
    """Convert the label->value mapping into its list representation."""
    return [CustomField(label=label, value=value) for label, value in fields.items()]


def extra_fields_from_list(
    items: Iterable[CustomField | Mapping[str, object]],
) -> dict[str, str]:
    """Convert a list of label/value entries into a mapping.

    Duplicate labels collapse to a single entry holding the last value,
    keeping the position of the first occurrence.
    """
    result: dict[str, str] = {}
    for item in items:
        if isinstance(item, CustomField):
            label, value = item.label, item.value
        else:
            label, value = str(item["label"]), item.get("value")
        result[label] = "" if value is None else str(value)
    return result
