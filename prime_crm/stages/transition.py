"""Stage transition engine.

A transition validates the staff submission against the target stage's field
specs, flattens it into the process's extra fields (last write wins per
label) and moves the process to the target stage. Nothing is mutated in
place: callers receive a new ``Process`` and the input is left untouched, so
a failed validation never leaves partial state behind.

Moving backwards or skipping stages is allowed; ordering is not enforced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Mapping

from prime_crm.exceptions import InvalidFieldValueError, MissingRequiredFieldError
from prime_crm.models.enums import FieldType, PendencyKind, StageId
from prime_crm.models.process import Process, utcnow
from prime_crm.stages.catalog import (
    CLIENT,
    INTERNAL,
    STAGE_CATALOG,
    YES,
    FieldSpec,
    StageCatalog,
    StageDefinition,
)
from prime_crm.values import parse_date, parse_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapturedField:
    """A validated value from a stage submission, kept as the typed raw string."""

    name: str
    field_type: FieldType
    raw: str

    def as_decimal(self) -> Decimal | None:
        return parse_decimal(self.raw)

    def as_date(self) -> date | None:
        return parse_date(self.raw)


@dataclass(frozen=True)
class StageSubmission:
    """Validated data for moving a process into ``stage_id``."""

    stage_id: StageId
    fields: tuple[CapturedField, ...] = ()

    def get(self, name: str) -> CapturedField | None:
        for captured in self.fields:
            if captured.name == name:
                return captured
        return None

    def to_extra_fields(self) -> dict[str, str]:
        """Flatten into the label->value representation stored on the process."""
        values = {captured.name: captured.raw for captured in self.fields}
        normalizer = _NORMALIZERS.get(self.stage_id)
        if normalizer is not None:
            values = normalizer(values)
        return values


def _normalize_legal_analysis(values: dict[str, str]) -> dict[str, str]:
    """Collapse the has-pendency answer into a canonical ``pendency_type``.

    ``has_pendency`` only gates the other two fields and is never stored. A
    "no" answer blanks ``pendency_desc`` so an earlier description is cleared.
    """
    result = dict(values)
    has_pendency = result.pop("has_pendency", None)
    if has_pendency is None:
        return result
    if has_pendency == YES:
        kind = {CLIENT: PendencyKind.CLIENT, INTERNAL: PendencyKind.INTERNAL}.get(
            result.get("pendency_type", "")
        )
        if kind is not None:
            result["pendency_type"] = kind.value
    else:
        result["pendency_type"] = PendencyKind.NONE.value
        result["pendency_desc"] = ""
    return result


_NORMALIZERS: dict[StageId, Callable[[dict[str, str]], dict[str, str]]] = {
    StageId.LEGAL_ANALYSIS: _normalize_legal_analysis,
}


def _check_type(spec: FieldSpec, raw: str) -> str:
    """Validate ``raw`` against the spec, returning the value to store."""
    if spec.field_type == FieldType.SELECT:
        option = spec.match_option(raw)
        if option is None:
            raise InvalidFieldValueError(spec.name, raw, f"expected one of {', '.join(spec.options)}")
        return option
    if spec.field_type == FieldType.NUMBER:
        value = parse_decimal(raw)
        if value is None:
            raise InvalidFieldValueError(spec.name, raw, "not a number")
        if value < 0:
            raise InvalidFieldValueError(spec.name, raw, "must not be negative")
    elif spec.field_type == FieldType.DATE:
        if parse_date(raw) is None:
            raise InvalidFieldValueError(spec.name, raw, "not a date")
    elif spec.field_type == FieldType.URL:
        if not raw.lower().startswith(("http://", "https://")):
            raise InvalidFieldValueError(spec.name, raw, "not an http(s) URL")
    return raw


class StageTransitionEngine:
    """Validates stage submissions and applies them to processes."""

    def __init__(
        self,
        catalog: StageCatalog = STAGE_CATALOG,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.catalog = catalog
        self._clock = clock

    def prepare(
        self,
        target_stage: StageId | str,
        captured_fields: Mapping[str, str] | None = None,
        *,
        require_fields: bool = True,
    ) -> StageSubmission:
        """Validate a submission for ``target_stage``.

        Parameters
        ----------
        target_stage : StageId | str
            Stage the process is moving into.
        captured_fields : Mapping[str, str] | None
            Field name -> value as typed by staff.
        require_fields : bool
            When False, missing required fields are tolerated (system-driven
            moves such as auto-advance carry no staff input).

        Raises
        ------
        UnknownStageError
            If the stage is not in the catalog.
        MissingRequiredFieldError
            If a visible required field is absent or blank.
        InvalidFieldValueError
            If a value does not match its declared type or options.
        """
        stage = self.catalog.lookup(target_stage)
        values = {
            name: "" if value is None else str(value).strip()
            for name, value in (captured_fields or {}).items()
        }

        # Select answers are canonicalised first so conditions compare like for like
        for spec in stage.fields:
            if spec.field_type == FieldType.SELECT and values.get(spec.name):
                values[spec.name] = spec.match_option(values[spec.name]) or values[spec.name]

        captured: list[CapturedField] = []
        for spec in stage.fields:
            if not spec.applies_to(values):
                continue
            raw = values.get(spec.name, "")
            if not raw:
                if spec.required and require_fields:
                    raise MissingRequiredFieldError(spec.name)
                continue
            captured.append(CapturedField(spec.name, spec.field_type, _check_type(spec, raw)))

        declared = {spec.name for spec in stage.fields}
        for name, raw in values.items():
            if name not in declared and raw:
                captured.append(CapturedField(name, FieldType.TEXT, raw))

        return StageSubmission(stage_id=stage.id, fields=tuple(captured))

    def apply(
        self,
        process: Process,
        submission: StageSubmission,
        *,
        now: datetime | None = None,
    ) -> Process:
        """Return ``process`` moved into the submission's stage."""
        stage: StageDefinition = self.catalog.lookup(submission.stage_id)
        extra_fields = dict(process.extra_fields)
        extra_fields.update(submission.to_extra_fields())

        updated = replace(
            process,
            status=stage.id,
            extra_fields=extra_fields,
            documents=list(process.documents),
            updated_at=now or self._clock(),
        )
        logger.info(
            "Process %s moved %s -> %s (%d%%)",
            process.id,
            getattr(process.status, "value", process.status),
            stage.id.value,
            stage.progress,
            extra={"process_id": process.id, "stage": stage.id.value},
        )
        return updated

    def transition(
        self,
        process: Process,
        target_stage: StageId | str,
        captured_fields: Mapping[str, str] | None = None,
        *,
        require_fields: bool = True,
        now: datetime | None = None,
    ) -> Process:
        """Validate and apply a move of ``process`` to ``target_stage``."""
        submission = self.prepare(target_stage, captured_fields, require_fields=require_fields)
        return self.apply(process, submission, now=now)


_default_engine = StageTransitionEngine()


def transition(
    process: Process,
    target_stage: StageId | str,
    captured_fields: Mapping[str, str] | None = None,
    *,
    now: datetime | None = None,
) -> Process:
    """Move a process using the default catalog."""
    return _default_engine.transition(process, target_stage, captured_fields, now=now)
