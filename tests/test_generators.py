"""Tests for the sample process generator."""

from datetime import datetime

from prime_crm.documents import all_approved
from prime_crm.generators import ProcessGenerator
from prime_crm.models import DocumentStatus, StageId
from prime_crm.pendency import classify
from prime_crm.stages.catalog import STAGE_CATALOG


class TestProcessGenerator:
    """Tests for ProcessGenerator."""

    def test_generate_process(self, seed: int, fixed_now: datetime) -> None:
        """Test a single process is complete and valid."""
        process = ProcessGenerator(seed=seed).generate(now=fixed_now)

        assert process.id
        assert process.client_name
        assert process.client_email and process.client_email == process.client_email.lower()
        assert len(process.client_cpf) == 14  # XXX.XXX.XXX-XX
        assert process.value > 0
        assert process.type in ProcessGenerator.PROGRAMS
        assert process.status in STAGE_CATALOG
        assert process.extra_fields["Telefone"]
        assert [d.id for d in process.documents] == ["doc1", "doc2", "doc3"]

    def test_reproducible_with_seed(self, seed: int, fixed_now: datetime) -> None:
        """Test the same seed yields the same processes."""
        first = list(ProcessGenerator(seed=seed).generate_batch(10, now=fixed_now))
        second = list(ProcessGenerator(seed=seed).generate_batch(10, now=fixed_now))

        assert first == second

    def test_different_seeds_differ(self, fixed_now: datetime) -> None:
        first = ProcessGenerator(seed=1).generate(now=fixed_now)
        second = ProcessGenerator(seed=2).generate(now=fixed_now)

        assert first.id != second.id

    def test_batch_invariants(self, seed: int, fixed_now: datetime) -> None:
        """Test every generated process obeys the pipeline rules."""
        processes = list(ProcessGenerator(seed=seed).generate_batch(200, now=fixed_now))

        assert len({p.id for p in processes}) == 200
        for process in processes:
            assert process.created_at <= process.updated_at <= fixed_now
            for doc in process.documents:
                if doc.status != DocumentStatus.PENDING:
                    assert doc.url and doc.uploaded_at <= fixed_now
                if doc.status == DocumentStatus.REJECTED:
                    assert doc.feedback
            if process.status == StageId.CREDIT_ANALYSIS:
                assert not all_approved(process)
            else:
                assert all_approved(process)
                assert process.extra_fields["bank_approved"] in ProcessGenerator.BANKS

    def test_stage_fields_captured(self, seed: int, fixed_now: datetime) -> None:
        """Test processes past a stage carry that stage's captured fields."""
        processes = list(ProcessGenerator(seed=seed).generate_batch(200, now=fixed_now))

        for process in processes:
            progress = STAGE_CATALOG.progress_percentage(process.status)
            if progress >= 40:
                assert "valuation_value" in process.extra_fields
            if process.status == StageId.CONTRACT_SIGNING:
                assert "signing_date" in process.extra_fields
                assert "protocol_number" in process.extra_fields
            if progress >= 60 and "pendency_type" in process.extra_fields:
                assert process.extra_fields["pendency_type"] in ("client", "internal", "none")

    def test_covers_every_stage(self, seed: int, fixed_now: datetime) -> None:
        statuses = {p.status for p in ProcessGenerator(seed=seed).generate_batch(300, now=fixed_now)}

        assert statuses == {stage.id for stage in STAGE_CATALOG}

    def test_pendencies_classified(self, seed: int, fixed_now: datetime) -> None:
        """Test generated legal-analysis pendencies are recognized."""
        processes = list(ProcessGenerator(seed=seed).generate_batch(300, now=fixed_now))

        assert any(classify(p).is_client for p in processes)
        assert any(classify(p).is_internal for p in processes)

    def test_attendants(self, seed: int, fixed_now: datetime) -> None:
        processes = ProcessGenerator(seed=seed, attendant_ids=["att-x"]).generate_batch(5, now=fixed_now)

        assert {p.attendant_id for p in processes} == {"att-x"}
