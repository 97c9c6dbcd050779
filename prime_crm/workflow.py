"""Process workflow coordinator.

Wires the stage transition engine, the document checklist engine, the
persistence adapter, the event bus and the notification dispatcher:

1. validate the command (engines raise before anything is written),
2. persist through the repository, which returns the authoritative process,
3. publish the resulting events (auto-advance listens here),
4. deliver notifications, best-effort.

Whether an approval completes the checklist is decided on the process the
repository returns after the write, and auto-advance re-reads it again, so
both act on the latest stored checklist rather than on a copy read before
the write. A failed auto-advance is logged and reported on the outcome; the
approval that triggered it stays committed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Mapping

from prime_crm import events as ev
from prime_crm.documents.checklist import (
    ChecklistResult,
    DocumentChecklist,
    all_approved,
    checklist_completed_event,
)
from prime_crm.events import EventBus
from prime_crm.exceptions import UnauthorizedError, ValidationError
from prime_crm.models.enums import Channel, DocumentEventType, StageId, UserRole
from prime_crm.models.process import CustomField, Document, Process, starter_documents, utcnow
from prime_crm.models.user import User
from prime_crm.notifications.dispatcher import DeliveryResult, NotificationDispatcher
from prime_crm.stages.catalog import STAGE_CATALOG, StageCatalog
from prime_crm.stages.transition import StageTransitionEngine
from prime_crm.store.base import ProcessRepository
from prime_crm.values import parse_decimal

logger = logging.getLogger(__name__)

EVENT_SOURCE = "process-workflow"


@dataclass
class StageChangeOutcome:
    """Result of moving a process to another stage."""

    process: Process
    previous_stage: StageId
    deliveries: list[DeliveryResult] = field(default_factory=list)

    @property
    def failed_deliveries(self) -> list[DeliveryResult]:
        return [d for d in self.deliveries if not d.success]


@dataclass
class DocumentOutcome:
    """Result of a checklist operation."""

    process: Process
    document: Document
    deliveries: list[DeliveryResult] = field(default_factory=list)
    auto_advance_error: str | None = None

    @property
    def failed_deliveries(self) -> list[DeliveryResult]:
        return [d for d in self.deliveries if not d.success]


class ProcessWorkflow:
    """Entry point for every process command issued from the UI."""

    def __init__(
        self,
        repository: ProcessRepository,
        dispatcher: NotificationDispatcher | None = None,
        bus: EventBus | None = None,
        engine: StageTransitionEngine | None = None,
        checklist: DocumentChecklist | None = None,
        catalog: StageCatalog = STAGE_CATALOG,
    ) -> None:
        self.repository = repository
        self.dispatcher = dispatcher
        self.catalog = catalog
        self.engine = engine or StageTransitionEngine(catalog)
        self.checklist = checklist or DocumentChecklist()
        self.bus = bus or EventBus()

    # Processes

    def create_process(
        self,
        *,
        client_name: str,
        type: str,
        value: Decimal | int | str,
        initial_stage: StageId | str | None = None,
        client_id: str | None = None,
        client_email: str | None = None,
        client_cpf: str | None = None,
        attendant_id: str | None = None,
        phone: str | None = None,
        extra_fields: Mapping[str, str] | None = None,
        actor_role: UserRole | str = UserRole.ADMIN,
    ) -> Process:
        """Open a new process with the starter checklist.

        Raises
        ------
        UnauthorizedError
            If a client tries to open a process.
        ValidationError
            If the name or type is blank, or the value is not a non-negative number.
        UnknownStageError
            If ``initial_stage`` is not in the catalog.
        """
        if not UserRole(actor_role).is_staff:
            raise UnauthorizedError("Only staff may open processes")
        if not client_name or not client_name.strip():
            raise ValidationError("Client name is required")
        if not type or not type.strip():
            raise ValidationError("Process type is required")

        amount = value if isinstance(value, Decimal) else parse_decimal(str(value))
        if amount is None or amount < 0:
            raise ValidationError(f"Invalid process value: {value!r}")

        stage = self.catalog.lookup(initial_stage) if initial_stage else self.catalog.first_stage()

        fields = dict(extra_fields or {})
        if phone and phone.strip():
            fields["Telefone"] = phone.strip()

        now = utcnow()
        process = Process(
            id=str(uuid.uuid4()),
            client_name=client_name.strip(),
            type=type.strip(),
            value=amount,
            status=stage.id,
            created_at=now,
            updated_at=now,
            client_id=client_id,
            client_email=client_email.strip().lower() if client_email else None,
            client_cpf=client_cpf,
            attendant_id=attendant_id,
            extra_fields=fields,
            documents=starter_documents(),
        )
        created = self.repository.create_process(process)
        logger.info("Process %s opened for %s at %s", created.id, created.client_name, stage.id.value)
        return created

    def list_processes(self, user: User) -> list[Process]:
        """Processes the user is allowed to see, most recently updated first."""
        return self.repository.get_processes(user.role, user.id, user.email)

    def get_process(self, process_id: str) -> Process:
        return self.repository.get_process(process_id)

    def update_extra_fields(
        self,
        process_id: str,
        fields: Mapping[str, str] | Iterable[CustomField | Mapping[str, object]],
    ) -> Process:
        return self.repository.update_process_fields(process_id, fields)

    def mark_read(self, process_id: str) -> Process:
        return self.repository.set_unread(process_id, False)

    # Stages

    def move_to_stage(
        self,
        process_id: str,
        target_stage: StageId | str,
        captured_fields: Mapping[str, str] | None = None,
        *,
        channels: Iterable[Channel | str] = (),
        message: str | None = None,
        sender_role: UserRole | str = UserRole.ATTENDANT,
    ) -> StageChangeOutcome:
        """Validate and persist a stage change, then notify on ``channels``.

        The stage change is committed before any notification is attempted;
        delivery failures are reported in the outcome and never undo it.
        """
        current = self.repository.get_process(process_id)
        submission = self.engine.prepare(target_stage, captured_fields)
        updated = self.repository.update_process_status(
            process_id, submission.stage_id, submission.to_extra_fields()
        )
        self._publish_stage_change(current.status, updated, automatic=False)

        deliveries: list[DeliveryResult] = []
        if self.dispatcher is not None and channels:
            deliveries = self.dispatcher.notify_stage_change(
                updated, channels, message, sender_role=sender_role
            )
            updated = self._after_delivery(updated, deliveries)
        return StageChangeOutcome(updated, current.status, deliveries)

    def notify(
        self,
        process_id: str,
        channel: Channel | str,
        message: str,
        *,
        sender_role: UserRole | str = UserRole.ATTENDANT,
    ) -> DeliveryResult:
        """Send a free-form message about a process."""
        if self.dispatcher is None:
            return DeliveryResult(Channel(channel), success=False, error="No dispatcher configured")
        process = self.repository.get_process(process_id)
        result = self.dispatcher.dispatch(process, channel, message, sender_role=sender_role)
        self._after_delivery(process, [result])
        return result

    # Documents

    def add_document(self, process_id: str, name: str) -> DocumentOutcome:
        result = self.checklist.add_document(self.repository.get_process(process_id), name)
        process = self.repository.add_document(process_id, result.document)
        return self._finish(process_id, result, process)

    def record_upload(self, process_id: str, doc_id: str, url: str) -> DocumentOutcome:
        result = self.checklist.record_upload(self.repository.get_process(process_id), doc_id, url)
        process = self.repository.replace_document(process_id, result.document)
        return self._finish(process_id, result, process)

    def approve_document(
        self,
        process_id: str,
        doc_id: str,
        actor_role: UserRole | str,
        *,
        channels: Iterable[Channel | str] = (),
    ) -> DocumentOutcome:
        """Approve an uploaded document; may trigger auto-advance.

        Completion is judged on the stored checklist returned by the write,
        so approvals racing on the same process still advance it once.
        """
        result = self.checklist.approve(self.repository.get_process(process_id), doc_id, actor_role)
        process = self.repository.replace_document(process_id, result.document)
        events = [e for e in result.events if e.event_type != ev.ALL_DOCUMENTS_APPROVED]
        if all_approved(process):
            events.append(checklist_completed_event(process))
        result = replace(result, process=process, events=events)
        return self._finish(process_id, result, process, DocumentEventType.APPROVED, channels)

    def reject_document(
        self,
        process_id: str,
        doc_id: str,
        feedback: str,
        actor_role: UserRole | str,
        *,
        channels: Iterable[Channel | str] = (),
    ) -> DocumentOutcome:
        result = self.checklist.reject(
            self.repository.get_process(process_id), doc_id, feedback, actor_role
        )
        process = self.repository.replace_document(process_id, result.document)
        return self._finish(process_id, result, process, DocumentEventType.REJECTED, channels)

    # Internals

    def _finish(
        self,
        process_id: str,
        result: ChecklistResult,
        process: Process,
        event_type: DocumentEventType | None = None,
        channels: Iterable[Channel | str] = (),
    ) -> DocumentOutcome:
        self.bus.publish_all(result.events)
        auto_advance_error: str | None = None
        if any(e.event_type == ev.ALL_DOCUMENTS_APPROVED for e in result.events):
            try:
                process = self._auto_advance(process_id)
            except Exception as e:
                logger.error(
                    "Auto-advance of process %s failed: %s",
                    process_id,
                    e,
                    exc_info=True,
                    extra={"process_id": process_id},
                )
                auto_advance_error = str(e)

        deliveries: list[DeliveryResult] = []
        channels = list(channels)
        if self.dispatcher is not None and event_type is not None and channels:
            deliveries = self.dispatcher.notify_document_event(process, result.document, event_type, channels)
            process = self._after_delivery(process, deliveries)
        return DocumentOutcome(process, result.document, deliveries, auto_advance_error)

    def _auto_advance(self, process_id: str) -> Process:
        process = self.repository.get_process(process_id)
        first = self.catalog.first_stage()
        if process.status != first.id or not all_approved(process):
            logger.debug("Auto-advance skipped for %s (status=%s)", process.id, process.status.value)
            return process

        target = self.catalog.next_stage(first.id)
        if target is None:
            return process
        submission = self.engine.prepare(target.id, None, require_fields=False)
        updated = self.repository.update_process_status(
            process.id, submission.stage_id, submission.to_extra_fields()
        )
        logger.info(
            "Process %s auto-advanced to %s after checklist approval",
            process.id,
            target.id.value,
            extra={"process_id": process.id, "stage": target.id.value},
        )
        self._publish_stage_change(process.status, updated, automatic=True)
        return updated

    def _publish_stage_change(self, previous: StageId, process: Process, *, automatic: bool) -> None:
        self.bus.publish(
            ev.make_event(
                ev.STAGE_CHANGED,
                process.id,
                {
                    "from": previous.value,
                    "to": process.status.value,
                    "progress": self.catalog.progress_percentage(process.status),
                    "automatic": automatic,
                },
                EVENT_SOURCE,
            )
        )

    def _after_delivery(self, process: Process, deliveries: list[DeliveryResult]) -> Process:
        if any(d.channel == Channel.CHAT and d.success for d in deliveries):
            return self.repository.set_unread(process.id, True)
        return process
