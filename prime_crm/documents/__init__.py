"""Document checklist engine."""

from prime_crm.documents.checklist import (
    ChecklistResult,
    DocumentChecklist,
    all_approved,
    allowed_actions,
    checklist_completed_event,
)

__all__ = [
    "ChecklistResult",
    "DocumentChecklist",
    "all_approved",
    "allowed_actions",
    "checklist_completed_event",
]
