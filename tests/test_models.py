"""Tests for domain models."""

from dataclasses import FrozenInstanceError, replace

import pytest

from prime_crm.models import (
    STARTER_CHECKLIST,
    CustomField,
    DocumentStatus,
    Process,
    User,
    UserRole,
    extra_fields_from_list,
    extra_fields_to_list,
    new_document_id,
    starter_documents,
)


class TestProcess:
    """Tests for Process helpers."""

    def test_get_field(self, sample_process: Process) -> None:
        process = replace(sample_process, extra_fields={"a": "1", "blank": "  "})

        assert process.get_field("a") == "1"
        assert process.get_field("blank") is None
        assert process.get_field("missing") is None

    def test_find_document(self, sample_process: Process) -> None:
        assert sample_process.find_document("doc2").name == "Comprovante de Renda"
        assert sample_process.find_document("nope") is None

    def test_first_name(self, sample_process: Process) -> None:
        assert sample_process.first_name == "Maria"
        assert replace(sample_process, client_name="").first_name == ""

    def test_defaults(self, sample_process: Process) -> None:
        assert sample_process.has_unread is False


class TestStarterChecklist:
    """Tests for the fixed starter checklist."""

    def test_starter_documents(self) -> None:
        documents = starter_documents()

        assert [d.name for d in documents] == list(STARTER_CHECKLIST)
        assert [d.id for d in documents] == ["doc1", "doc2", "doc3"]
        assert all(d.status == DocumentStatus.PENDING and not d.is_extra for d in documents)

    def test_fresh_lists(self) -> None:
        """Test each call returns independent documents."""
        first = starter_documents()
        first[0].status = DocumentStatus.APPROVED

        assert starter_documents()[0].status == DocumentStatus.PENDING

    def test_new_document_id(self) -> None:
        assert new_document_id().startswith("doc_")
        assert new_document_id() != new_document_id()


class TestExtraFieldConversion:
    """Tests for the map/list representations of extra fields."""

    def test_to_list_keeps_order(self) -> None:
        fields = extra_fields_to_list({"b": "1", "a": "2"})

        assert fields == [CustomField("b", "1"), CustomField("a", "2")]

    def test_from_list_last_value_wins(self) -> None:
        """Test duplicate labels keep the first position and the last value."""
        result = extra_fields_from_list(
            [{"label": "x", "value": "1"}, CustomField("y", "2"), {"label": "x", "value": "3"}]
        )

        assert list(result.items()) == [("x", "3"), ("y", "2")]

    def test_from_list_none_value(self) -> None:
        assert extra_fields_from_list([{"label": "x", "value": None}]) == {"x": ""}


class TestUser:
    """Tests for User and roles."""

    def test_user_is_frozen(self, client_user: User) -> None:
        with pytest.raises(FrozenInstanceError):
            client_user.role = UserRole.ADMIN

    def test_staff_roles(self) -> None:
        assert UserRole.ADMIN.is_staff
        assert UserRole.ATTENDANT.is_staff
        assert not UserRole.CLIENT.is_staff
