"""Enumeration types for CRM entities."""

from enum import Enum


class StageId(str, Enum):
    CREDIT_ANALYSIS = "credit_analysis"
    VALUATION = "valuation"
    LEGAL_ANALYSIS = "legal_analysis"
    ITBI_EMISSION = "itbi_emission"
    REGISTRY_SERVICE = "registry_service"
    CONTRACT_SIGNING = "contract_signing"
    PENDING_CLIENT = "pending_client"
    PENDING_INTERNAL = "pending_internal"


class DocumentStatus(str, Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(str, Enum):
    ADMIN = "admin"
    ATTENDANT = "attendant"
    CLIENT = "client"

    @property
    def is_staff(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.ATTENDANT)


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    CHAT = "chat"


class DocumentEventType(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentAction(str, Enum):
    UPLOAD = "upload"  # client sends own file
    ATTACH = "attach"  # staff uploads on the client's behalf
    APPROVE = "approve"
    REJECT = "reject"


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    URL = "url"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"


class PendencyKind(str, Enum):
    NONE = "none"
    CLIENT = "client"
    INTERNAL = "internal"
