"""Persistence adapter interface for processes.

Backends implement a handful of primitive reads and writes; the mutators
are shared and follow a load, modify, save cycle. Every mutator returns the
authoritative updated process.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import fields as dataclass_fields
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from prime_crm.exceptions import DocumentNotFoundError, ValidationError
from prime_crm.models.enums import DocumentStatus, StageId, UserRole
from prime_crm.models.process import CustomField, Document, Process, extra_fields_from_list, utcnow

logger = logging.getLogger(__name__)

_DOCUMENT_FIELDS = frozenset(f.name for f in dataclass_fields(Document)) - {"id"}


def visible_to(process: Process, role: UserRole | str, user_id: str, user_email: str | None = None) -> bool:
    """Whether a user with ``role`` may see ``process``.

    Admins see everything and attendants see the processes assigned to them.
    Clients see their own processes; a process created before the client
    registered has no ``client_id`` and is matched on e-mail instead.
    """
    role = UserRole(role)
    if role == UserRole.ADMIN:
        return True
    if role == UserRole.ATTENDANT:
        return process.attendant_id == user_id
    if process.client_id:
        return process.client_id == user_id
    return bool(user_email and process.client_email) and (
        process.client_email.casefold() == user_email.casefold()
    )


def most_recent_first(processes: Iterable[Process]) -> list[Process]:
    return sorted(processes, key=lambda p: p.updated_at, reverse=True)


class ProcessRepository(ABC):
    """Abstract process store."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock

    # Primitive operations

    @abstractmethod
    def get_process(self, process_id: str) -> Process:
        """Return one process.

        Raises
        ------
        ProcessNotFoundError
            If no process has ``process_id``.
        """

    @abstractmethod
    def _list_all(self) -> Iterable[Process]:
        """All stored processes, in any order."""

    @abstractmethod
    def _insert(self, process: Process) -> None:
        """Store a new process; raise ``StoreError`` if the id is taken."""

    @abstractmethod
    def _save(self, process: Process) -> None:
        """Overwrite an existing process."""

    # Queries

    def get_processes(
        self,
        role: UserRole | str,
        user_id: str,
        user_email: str | None = None,
    ) -> list[Process]:
        """Processes visible to the user, most recently updated first."""
        return most_recent_first(
            p for p in self._list_all() if visible_to(p, role, user_id, user_email)
        )

    # Mutators

    def create_process(self, process: Process) -> Process:
        self._insert(process)
        logger.debug("Created process %s", process.id)
        return self.get_process(process.id)

    def update_process_status(
        self,
        process_id: str,
        stage: StageId | str,
        captured_fields: Mapping[str, str] | None = None,
    ) -> Process:
        """Move a process to ``stage`` and merge already-validated captured fields."""
        current = self.get_process(process_id)
        extra_fields = dict(current.extra_fields)
        extra_fields.update(captured_fields or {})
        return self._commit(replace(current, status=StageId(stage), extra_fields=extra_fields))

    def update_document(self, process_id: str, doc_id: str, changes: Mapping[str, Any]) -> Process:
        """Apply a partial update to one checklist item."""
        unknown = set(changes) - _DOCUMENT_FIELDS
        if unknown:
            raise ValidationError(f"Unknown document attribute(s): {', '.join(sorted(unknown))}")

        current = self.get_process(process_id)
        document = current.find_document(doc_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {doc_id} not found in process {process_id}")

        updates = dict(changes)
        if "status" in updates:
            updates["status"] = DocumentStatus(updates["status"])
        updated_doc = replace(document, **updates)
        documents = [updated_doc if d.id == doc_id else d for d in current.documents]
        return self._commit(replace(current, documents=documents))

    def replace_document(self, process_id: str, document: Document) -> Process:
        """Store a document produced by the checklist engine."""
        return self.update_document(
            process_id,
            document.id,
            {name: getattr(document, name) for name in _DOCUMENT_FIELDS},
        )

    def add_document(self, process_id: str, document: Document) -> Process:
        current = self.get_process(process_id)
        return self._commit(replace(current, documents=[*current.documents, document]))

    def update_process_fields(
        self,
        process_id: str,
        fields: Mapping[str, str] | Iterable[CustomField | Mapping[str, object]],
    ) -> Process:
        """Replace the process's extra fields with ``fields``."""
        if isinstance(fields, Mapping):
            extra_fields = {str(k): str(v) for k, v in fields.items()}
        else:
            extra_fields = extra_fields_from_list(fields)
        current = self.get_process(process_id)
        return self._commit(replace(current, extra_fields=extra_fields))

    def set_unread(self, process_id: str, has_unread: bool) -> Process:
        current = self.get_process(process_id)
        return self._commit(replace(current, has_unread=has_unread))

    def close(self) -> None:
        """Release backend resources."""

    def _commit(self, process: Process) -> Process:
        process = replace(process, updated_at=self._clock())
        self._save(process)
        logger.debug("Saved process %s (status=%s)", process.id, process.status.value)
        return self.get_process(process.id)
