"""Domain models for the CRM core."""

from prime_crm.models.base import Event
from prime_crm.models.enums import (
    Channel,
    DocumentAction,
    DocumentEventType,
    DocumentStatus,
    FieldType,
    PendencyKind,
    StageId,
    UserRole,
)
from prime_crm.models.process import (
    STARTER_CHECKLIST,
    CustomField,
    Document,
    Process,
    extra_fields_from_list,
    extra_fields_to_list,
    new_document_id,
    starter_documents,
    utcnow,
)
from prime_crm.models.user import User

__all__ = [
    "Channel",
    "CustomField",
    "Document",
    "DocumentAction",
    "DocumentEventType",
    "DocumentStatus",
    "Event",
    "FieldType",
    "PendencyKind",
    "Process",
    "STARTER_CHECKLIST",
    "StageId",
    "User",
    "UserRole",
    "extra_fields_from_list",
    "extra_fields_to_list",
    "new_document_id",
    "starter_documents",
    "utcnow",
]
