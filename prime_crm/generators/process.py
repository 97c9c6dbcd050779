"""Sample process generator.

Processes are not assembled field by field: each one is opened at the first
stage and then pushed through the real transition and checklist engines,
so generated data always satisfies the same rules as production data.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterator

from prime_crm.documents.checklist import DocumentChecklist
from prime_crm.generators.base import BaseGenerator
from prime_crm.models.enums import DocumentStatus, StageId, UserRole
from prime_crm.models.process import Process, starter_documents, utcnow
from prime_crm.stages.catalog import CLIENT, INTERNAL, NO, STAGE_CATALOG, YES, StageCatalog
from prime_crm.stages.transition import StageTransitionEngine
from prime_crm.values import format_number_br


class ProcessGenerator(BaseGenerator):
    """Generate realistic financing processes at random pipeline positions."""

    PROGRAMS = [
        "Minha Casa Minha Vida",
        "SBPE",
        "Pró-Cotista",
        "Crédito com Garantia de Imóvel",
        "Consórcio",
    ]
    PROGRAM_WEIGHTS = [0.35, 0.35, 0.10, 0.12, 0.08]

    BANKS = ["Caixa", "Banco do Brasil", "Itaú", "Bradesco", "Santander", "Inter"]

    # Final position of a generated process; pendency overlays included
    STAGE_WEIGHTS = {
        StageId.CREDIT_ANALYSIS: 0.25,
        StageId.VALUATION: 0.18,
        StageId.LEGAL_ANALYSIS: 0.17,
        StageId.ITBI_EMISSION: 0.12,
        StageId.REGISTRY_SERVICE: 0.08,
        StageId.CONTRACT_SIGNING: 0.10,
        StageId.PENDING_CLIENT: 0.06,
        StageId.PENDING_INTERNAL: 0.04,
    }

    CLIENT_PENDENCIES = [
        "Falta RG do cônjuge",
        "Comprovante de renda desatualizado",
        "Certidão de casamento ilegível",
        "Extrato do FGTS pendente",
    ]
    INTERNAL_PENDENCIES = [
        "Matrícula do imóvel com divergência de área",
        "Aguardando retorno do jurídico do banco",
        "Laudo com erro de digitação",
    ]

    PENDENCY_RATE = 0.3
    REGISTERED_CLIENT_RATE = 0.7
    MAX_AGE_DAYS = 180

    def __init__(
        self,
        seed: int | None = None,
        attendant_ids: list[str] | None = None,
        catalog: StageCatalog = STAGE_CATALOG,
    ) -> None:
        super().__init__(seed)
        self.catalog = catalog
        self.attendant_ids = attendant_ids or ["attendant-1", "attendant-2"]
        self.checklist = DocumentChecklist()
        self.engine = StageTransitionEngine(catalog)

    def generate(self, now: datetime | None = None) -> Process:
        """Generate a single process.

        Parameters
        ----------
        now : datetime | None
            Upper bound for generated timestamps (defaults to current UTC time).

        Returns
        -------
        Process
            Generated process.
        """
        return self._generate_one(now or utcnow())

    def generate_batch(self, count: int, now: datetime | None = None) -> Iterator[Process]:
        """Generate multiple processes.

        Parameters
        ----------
        count : int
            Number of processes to generate.
        now : datetime | None
            Upper bound for generated timestamps.

        Yields
        ------
        Process
            Generated processes.
        """
        reference = now or utcnow()
        for _ in range(count):
            yield self._generate_one(reference)

    def _generate_one(self, now: datetime) -> Process:
        target = self.random.choices(
            list(self.STAGE_WEIGHTS), weights=list(self.STAGE_WEIGHTS.values()), k=1
        )[0]
        created_at = now - timedelta(
            days=self.random.randint(0, self.MAX_AGE_DAYS),
            minutes=self.random.randint(0, 24 * 60),
        )
        process = self._open(created_at)
        clock = created_at

        if target == StageId.CREDIT_ANALYSIS:
            return self._partial_checklist(process, clock, now)

        process, clock = self._approve_all(process, clock, now)
        first = self.catalog.first_stage().id
        process = self.engine.transition(process, first, self._captured_fields(process, first, clock), now=clock)

        pipeline = [s.id for s in self.catalog.ordered_stages()]
        if target in pipeline:
            path = pipeline[1 : pipeline.index(target) + 1]
        else:
            # Pendency overlays are reached from legal analysis
            path = pipeline[1 : pipeline.index(StageId.LEGAL_ANALYSIS) + 1] + [target]

        for stage_id in path:
            clock = self._advance(clock, now)
            process = self.engine.transition(
                process,
                stage_id,
                self._captured_fields(process, stage_id, clock),
                now=clock,
            )
        return process

    def _open(self, created_at: datetime) -> Process:
        name = self.fake.name()
        value = Decimal(self.random.randrange(150_000, 1_500_000, 5_000))
        registered = self.random.random() < self.REGISTERED_CLIENT_RATE
        program = self.random.choices(self.PROGRAMS, weights=self.PROGRAM_WEIGHTS, k=1)[0]
        return Process(
            id=str(uuid.UUID(int=self.random.getrandbits(128), version=4)),
            client_name=name,
            type=program,
            value=value,
            status=self.catalog.first_stage().id,
            created_at=created_at,
            updated_at=created_at,
            client_id=f"user-{self.random.getrandbits(32):08x}" if registered else None,
            client_email=self.fake.email().lower(),
            client_cpf=self.fake.cpf(),
            attendant_id=self.random.choice(self.attendant_ids),
            extra_fields={"Telefone": self.fake.phone_number()},
            documents=starter_documents(),
        )

    def _advance(self, clock: datetime, now: datetime) -> datetime:
        step = clock + timedelta(days=self.random.randint(1, 12), hours=self.random.randint(0, 23))
        return min(step, now)

    def _upload(self, process: Process, doc_id: str, clock: datetime) -> Process:
        url = f"https://storage.primehabitacao.com.br/{process.id}/{doc_id}.pdf"
        return self.checklist.record_upload(process, doc_id, url, now=clock).process

    def _approve_all(self, process: Process, clock: datetime, now: datetime) -> tuple[Process, datetime]:
        for doc in list(process.documents):
            clock = min(clock + timedelta(hours=self.random.randint(1, 48)), now)
            process = self._upload(process, doc.id, clock)
            process = self.checklist.approve(process, doc.id, UserRole.ATTENDANT, now=clock).process
        return process, clock

    def _partial_checklist(self, process: Process, clock: datetime, now: datetime) -> Process:
        """Leave a first-stage process with a mixed, not fully approved checklist."""
        documents = list(process.documents)
        blocked = self.random.randrange(len(documents))
        for index, doc in enumerate(documents):
            outcome = self.random.choice(
                [DocumentStatus.PENDING, DocumentStatus.UPLOADED, DocumentStatus.APPROVED, DocumentStatus.REJECTED]
            )
            if index == blocked and outcome == DocumentStatus.APPROVED:
                outcome = DocumentStatus.UPLOADED
            if outcome == DocumentStatus.PENDING:
                continue
            clock = min(clock + timedelta(hours=self.random.randint(1, 48)), now)
            process = self._upload(process, doc.id, clock)
            if outcome == DocumentStatus.APPROVED:
                process = self.checklist.approve(process, doc.id, UserRole.ATTENDANT, now=clock).process
            elif outcome == DocumentStatus.REJECTED:
                feedback = self.random.choice(["Documento ilegível", "Documento vencido", "Arquivo incompleto"])
                process = self.checklist.reject(process, doc.id, feedback, UserRole.ATTENDANT, now=clock).process
        return replace(process, has_unread=self.random.random() < 0.2)

    def _captured_fields(self, process: Process, stage_id: StageId, clock: datetime) -> dict[str, str]:
        value = process.value
        if stage_id == StageId.CREDIT_ANALYSIS:
            return {
                "bank_approved": self.random.choice(self.BANKS),
                "credit_value": format_number_br(value * Decimal("0.8")),
            }
        if stage_id == StageId.VALUATION:
            factor = Decimal(self.random.randint(95, 110)) / 100
            return {"valuation_value": format_number_br((value * factor).quantize(Decimal("1")))}
        if stage_id == StageId.LEGAL_ANALYSIS:
            if self.random.random() >= self.PENDENCY_RATE:
                return {"has_pendency": NO}
            if self.random.random() < 0.6:
                return {
                    "has_pendency": YES,
                    "pendency_type": CLIENT,
                    "pendency_desc": self.random.choice(self.CLIENT_PENDENCIES),
                }
            return {
                "has_pendency": YES,
                "pendency_type": INTERNAL,
                "pendency_desc": self.random.choice(self.INTERNAL_PENDENCIES),
            }
        if stage_id == StageId.ITBI_EMISSION:
            return {
                "itbi_value": format_number_br((value * Decimal("0.03")).quantize(Decimal("0.01"))),
                "itbi_due_date": (clock + timedelta(days=30)).date().isoformat(),
            }
        if stage_id == StageId.REGISTRY_SERVICE:
            return {
                "registry_office": f"{self.random.randint(1, 18)}º Registro de Imóveis de {self.fake.city()}",
                "protocol_number": str(self.random.randint(100_000, 999_999)),
            }
        if stage_id == StageId.CONTRACT_SIGNING:
            return {"signing_date": (clock + timedelta(days=self.random.randint(3, 20))).date().isoformat()}
        if stage_id == StageId.PENDING_CLIENT:
            return {"move_obs": self.random.choice(self.CLIENT_PENDENCIES)}
        return {"move_obs": self.random.choice(self.INTERNAL_PENDENCIES)}
