"""Pendency classification derived from a process's extra fields."""

from dataclasses import dataclass
from typing import Mapping

from prime_crm.models.enums import PendencyKind
from prime_crm.models.process import Process

# Stage capture writes the English key; hand-entered custom fields use the Portuguese one.
PENDENCY_TYPE_KEYS = ("pendency_type", "tipo_pendencia")
PENDENCY_DESC_KEYS = ("pendency_desc", "descricao_pendencia")

CLIENT_VALUES = frozenset({"client", "cliente"})
INTERNAL_VALUES = frozenset({"internal", "interna"})


@dataclass(frozen=True)
class PendencyStatus:
    """Display classification of a process."""

    has_pendency: bool
    is_client: bool
    is_internal: bool

    @property
    def kind(self) -> PendencyKind:
        if self.is_client:
            return PendencyKind.CLIENT
        if self.is_internal:
            return PendencyKind.INTERNAL
        return PendencyKind.NONE


NO_PENDENCY = PendencyStatus(has_pendency=False, is_client=False, is_internal=False)


def _first_value(fields: Mapping[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        if key in fields:
            return fields[key]
    return None


def classify(process: Process | Mapping[str, str]) -> PendencyStatus:
    """Classify a process as blocked on the client, blocked internally, or clear.

    Values are matched case-sensitively. The function does not look at the
    process stage.
    """
    fields = process.extra_fields if isinstance(process, Process) else process
    value = _first_value(fields, PENDENCY_TYPE_KEYS)
    if value in CLIENT_VALUES:
        return PendencyStatus(has_pendency=True, is_client=True, is_internal=False)
    if value in INTERNAL_VALUES:
        return PendencyStatus(has_pendency=True, is_client=False, is_internal=True)
    return NO_PENDENCY


def pendency_description(process: Process) -> str | None:
    """The free-text pendency description, if one was captured."""
    value = _first_value(process.extra_fields, PENDENCY_DESC_KEYS)
    if value is None or not value.strip():
        return None
    return value
