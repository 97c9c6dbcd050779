"""Document checklist engine: per-process approval workflow.

Status flow for each document::

    pending -> uploaded -> approved
                       \\-> rejected -> uploaded (re-submission)

Every operation returns a ``ChecklistResult`` holding the new process and the
events the mutation produced. Events are returned rather than published so
the caller can publish them once the change is persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable

from prime_crm import events as ev
from prime_crm.exceptions import (
    DocumentNotFoundError,
    InvalidEntityStateError,
    MissingFeedbackError,
    UnauthorizedError,
    ValidationError,
)
from prime_crm.models.base import Event
from prime_crm.models.enums import DocumentAction, DocumentStatus, UserRole
from prime_crm.models.process import Document, Process, new_document_id, utcnow

logger = logging.getLogger(__name__)

EVENT_SOURCE = "document-checklist"

UPLOADABLE = frozenset({DocumentStatus.PENDING, DocumentStatus.REJECTED, DocumentStatus.UPLOADED})


@dataclass
class ChecklistResult:
    """Outcome of a checklist mutation."""

    process: Process
    document: Document
    events: list[Event] = field(default_factory=list)


def allowed_actions(document: Document, role: UserRole | str) -> frozenset[DocumentAction]:
    """Actions the UI should offer ``role`` on ``document``."""
    role = UserRole(role)
    if document.status in (DocumentStatus.PENDING, DocumentStatus.REJECTED):
        return frozenset({DocumentAction.ATTACH if role.is_staff else DocumentAction.UPLOAD})
    if document.status == DocumentStatus.UPLOADED and role.is_staff:
        return frozenset({DocumentAction.APPROVE, DocumentAction.REJECT})
    return frozenset()


def all_approved(process: Process) -> bool:
    """True when the checklist is non-empty and every document is approved."""
    return bool(process.documents) and all(
        doc.status == DocumentStatus.APPROVED for doc in process.documents
    )


def checklist_completed_event(process: Process) -> Event:
    """The ``process.documents_approved`` event for a fully approved checklist."""
    return ev.make_event(
        ev.ALL_DOCUMENTS_APPROVED,
        process.id,
        {"stage": process.status.value, "document_count": len(process.documents)},
        EVENT_SOURCE,
    )


def _require_staff(role: UserRole | str, action: str) -> None:
    if not UserRole(role).is_staff:
        raise UnauthorizedError(f"Role {UserRole(role).value!r} may not {action} documents")


class DocumentChecklist:
    """Applies document operations to a process checklist."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock

    def add_document(self, process: Process, name: str, *, now: datetime | None = None) -> ChecklistResult:
        """Append an ad hoc document in ``pending``. Duplicate names are allowed."""
        if not name or not name.strip():
            raise ValidationError("Document name must not be empty")
        document = Document(id=new_document_id(), name=name.strip(), is_extra=True)
        updated = replace(
            process,
            documents=[*process.documents, document],
            updated_at=now or self._clock(),
        )
        logger.info(
            "Document %s (%s) added to process %s",
            document.id,
            document.name,
            process.id,
            extra={"process_id": process.id, "doc_id": document.id},
        )
        event = ev.make_event(
            ev.DOCUMENT_ADDED, process.id, {"document_id": document.id, "name": document.name}, EVENT_SOURCE
        )
        return ChecklistResult(updated, document, [event])

    def record_upload(
        self,
        process: Process,
        doc_id: str,
        url: str,
        *,
        now: datetime | None = None,
    ) -> ChecklistResult:
        """Mark a document uploaded and clear any earlier rejection feedback."""
        if not url or not url.strip():
            raise ValidationError("Upload URL must not be empty")
        current = self._find(process, doc_id)
        if current.status not in UPLOADABLE:
            raise InvalidEntityStateError(
                f"Document {doc_id} is {current.status.value}; it cannot be replaced"
            )
        stamp = now or self._clock()
        document = replace(
            current,
            status=DocumentStatus.UPLOADED,
            url=url.strip(),
            uploaded_at=stamp,
            feedback=None,
        )
        event = ev.make_event(
            ev.DOCUMENT_UPLOADED, process.id, {"document_id": doc_id, "url": document.url}, EVENT_SOURCE
        )
        return ChecklistResult(self._replace(process, document, stamp), document, [event])

    def approve(
        self,
        process: Process,
        doc_id: str,
        actor_role: UserRole | str,
        *,
        now: datetime | None = None,
    ) -> ChecklistResult:
        """Approve an uploaded document.

        Emits ``document.approved`` and, when this approval completes the
        checklist, ``process.documents_approved``.
        """
        _require_staff(actor_role, "approve")
        current = self._find(process, doc_id)
        if current.status != DocumentStatus.UPLOADED:
            raise InvalidEntityStateError(
                f"Document {doc_id} is {current.status.value}; only uploaded documents can be approved"
            )
        stamp = now or self._clock()
        document = replace(current, status=DocumentStatus.APPROVED, feedback=None)
        updated = self._replace(process, document, stamp)
        logger.info(
            "Document %s approved on process %s", doc_id, process.id, extra={"process_id": process.id, "doc_id": doc_id}
        )

        data = {"document_id": doc_id, "name": document.name}
        events = [ev.make_event(ev.DOCUMENT_APPROVED, process.id, data, EVENT_SOURCE)]
        if all_approved(updated):
            events.append(checklist_completed_event(updated))
        return ChecklistResult(updated, document, events)

    def reject(
        self,
        process: Process,
        doc_id: str,
        feedback: str,
        actor_role: UserRole | str,
        *,
        now: datetime | None = None,
    ) -> ChecklistResult:
        """Reject an uploaded document with a mandatory reason."""
        _require_staff(actor_role, "reject")
        if feedback is None or not feedback.strip():
            raise MissingFeedbackError("A rejection reason is required")
        current = self._find(process, doc_id)
        if current.status != DocumentStatus.UPLOADED:
            raise InvalidEntityStateError(
                f"Document {doc_id} is {current.status.value}; only uploaded documents can be rejected"
            )
        stamp = now or self._clock()
        document = replace(current, status=DocumentStatus.REJECTED, feedback=feedback.strip())
        logger.info(
            "Document %s rejected on process %s", doc_id, process.id, extra={"process_id": process.id, "doc_id": doc_id}
        )
        event = ev.make_event(
            ev.DOCUMENT_REJECTED,
            process.id,
            {"document_id": doc_id, "name": document.name, "feedback": document.feedback},
            EVENT_SOURCE,
        )
        return ChecklistResult(self._replace(process, document, stamp), document, [event])

    @staticmethod
    def _find(process: Process, doc_id: str) -> Document:
        document = process.find_document(doc_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {doc_id} not found in process {process.id}")
        return document

    @staticmethod
    def _replace(process: Process, document: Document, stamp: datetime) -> Process:
        documents = [document if doc.id == document.id else doc for doc in process.documents]
        return replace(process, documents=documents, updated_at=stamp)
