"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from prime_crm.models import Process, StageId, User, UserRole, starter_documents
from prime_crm.store.memory import InMemoryProcessStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def fixed_now() -> datetime:
    """Reference timestamp for deterministic tests."""
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_process(fixed_now: datetime) -> Process:
    """Process at the first stage with the starter checklist."""
    return Process(
        id="proc-test-001",
        client_name="Maria Souza Lima",
        type="SBPE",
        value=Decimal("350000"),
        status=StageId.CREDIT_ANALYSIS,
        created_at=fixed_now,
        updated_at=fixed_now,
        client_id="client-001",
        client_email="maria@example.com",
        client_cpf="123.456.789-00",
        attendant_id="attendant-001",
        extra_fields={"Telefone": "+5511988887777"},
        documents=starter_documents(),
    )


@pytest.fixture
def memory_store() -> InMemoryProcessStore:
    """Empty in-memory store."""
    return InMemoryProcessStore()


@pytest.fixture
def admin_user() -> User:
    return User(id="admin-001", email="admin@primehabitacao.com.br", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def attendant_user() -> User:
    return User(id="attendant-001", email="ana@primehabitacao.com.br", name="Ana", role=UserRole.ATTENDANT)


@pytest.fixture
def client_user() -> User:
    return User(id="client-001", email="maria@example.com", name="Maria Souza Lima", role=UserRole.CLIENT)
