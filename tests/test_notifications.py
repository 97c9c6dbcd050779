"""Tests for notification templates and the dispatcher."""

from dataclasses import replace
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from prime_crm.config import NotificationConfig
from prime_crm.exceptions import MissingFeedbackError, NotificationDeliveryError
from prime_crm.models import Channel, Document, DocumentEventType, DocumentStatus, Process, StageId, UserRole
from prime_crm.notifications import (
    DeliveryResult,
    NotificationDispatcher,
    client_phone,
    compose_document_event_message,
    compose_email_html,
    compose_email_subject,
    compose_stage_message,
)
from prime_crm.sinks.base import MessageSender


def _at(process: Process, stage: StageId, **fields: str) -> Process:
    return replace(process, status=stage, extra_fields=fields)


class TestStageMessages:
    """Tests for compose_stage_message()."""

    def test_credit_analysis_full(self, sample_process: Process) -> None:
        """Test bank and value are interpolated."""
        message = compose_stage_message(
            _at(sample_process, StageId.CREDIT_ANALYSIS, bank_approved="Caixa", credit_value="280000")
        )

        assert message.startswith("Olá Maria!")
        assert "aprovado pelo Caixa no valor de R$ 280.000." in message
        assert "Próxima etapa: Avaliação do imóvel." in message

    def test_credit_analysis_defaults(self, sample_process: Process) -> None:
        """Test missing bank falls back and missing value is omitted."""
        message = compose_stage_message(_at(sample_process, StageId.CREDIT_ANALYSIS))

        assert "aprovado pelo banco parceiro." in message
        assert "R$" not in message

    def test_valuation(self, sample_process: Process) -> None:
        message = compose_stage_message(_at(sample_process, StageId.VALUATION, valuation_value="1.234,5"))

        assert "concluída com o valor de R$ 1.234,5." in message

    def test_itbi_value_without_due_date(self, sample_process: Process) -> None:
        """Test the due-date clause is dropped when absent."""
        message = compose_stage_message(_at(sample_process, StageId.ITBI_EMISSION, itbi_value="10500"))

        assert "O ITBI foi emitido no valor de R$ 10.500." in message
        assert "vencimento" not in message
        assert "{" not in message and "undefined" not in message

    def test_itbi_with_due_date(self, sample_process: Process) -> None:
        message = compose_stage_message(
            _at(sample_process, StageId.ITBI_EMISSION, itbi_value="10500", itbi_due_date="2024-07-01")
        )

        assert "com vencimento em 01/07/2024" in message

    def test_legal_analysis_client_pendency(self, sample_process: Process) -> None:
        """Test client pendency wording includes the description."""
        message = compose_stage_message(
            _at(sample_process, StageId.LEGAL_ANALYSIS, pendency_type="client", pendency_desc="Falta RG")
        )

        assert "Identificamos uma pendência na documentação:\n\nFalta RG" in message

    def test_legal_analysis_internal_pendency(self, sample_process: Process) -> None:
        message = compose_stage_message(_at(sample_process, StageId.LEGAL_ANALYSIS, pendency_type="internal"))

        assert "Estamos trabalhando internamente" in message

    def test_legal_analysis_clear(self, sample_process: Process) -> None:
        message = compose_stage_message(_at(sample_process, StageId.LEGAL_ANALYSIS, pendency_type="none"))

        assert "Análise jurídica concluída com sucesso!" in message

    def test_registry_service(self, sample_process: Process) -> None:
        message = compose_stage_message(
            _at(sample_process, StageId.REGISTRY_SERVICE, registry_office="1º RI de Campinas", protocol_number="123")
        )

        assert "registro no 1º RI de Campinas, protocolo nº 123." in message

    def test_contract_signing_with_and_without_date(self, sample_process: Process) -> None:
        dated = compose_stage_message(_at(sample_process, StageId.CONTRACT_SIGNING, signing_date="2024-08-10"))
        undated = compose_stage_message(_at(sample_process, StageId.CONTRACT_SIGNING))

        assert "agendada para 10/08/2024." in dated
        assert "Em breve agendaremos a assinatura do contrato." in undated

    def test_pending_client_stage(self, sample_process: Process) -> None:
        message = compose_stage_message(_at(sample_process, StageId.PENDING_CLIENT))

        assert "Identificamos uma pendência" in message

    def test_unknown_status_falls_back(self, sample_process: Process) -> None:
        """Test unrecognized statuses get the generic message."""
        message = compose_stage_message(replace(sample_process, status="legacy_status"))

        assert "Seu processo está em andamento." in message

    def test_no_client_name(self, sample_process: Process) -> None:
        message = compose_stage_message(replace(_at(sample_process, StageId.VALUATION), client_name=""))

        assert message.startswith("Olá! ")


class TestDocumentEventMessages:
    """Tests for compose_document_event_message()."""

    def test_rejection_quotes_feedback(self) -> None:
        doc = Document(id="d1", name="RG e CPF", status=DocumentStatus.REJECTED, feedback="Foto cortada")

        message = compose_document_event_message(doc, DocumentEventType.REJECTED, client_name="João Silva")

        assert message.startswith("Olá João!")
        assert "Motivo: Foto cortada" in message
        assert '"RG e CPF" foi recusado' in message

    def test_rejection_without_feedback(self) -> None:
        doc = Document(id="d1", name="RG", status=DocumentStatus.REJECTED)

        with pytest.raises(MissingFeedbackError):
            compose_document_event_message(doc, "rejected")

    def test_approval(self) -> None:
        doc = Document(id="d1", name="Comprovante de Renda", status=DocumentStatus.APPROVED)

        message = compose_document_event_message(doc, "approved")

        assert '"Comprovante de Renda" foi aprovado' in message


class TestEmailComposition:
    """Tests for e-mail subject and body."""

    def test_subject(self, sample_process: Process) -> None:
        assert compose_email_subject(sample_process) == "Atualização do seu processo - 20% - Crédito"

    def test_html_body(self, sample_process: Process) -> None:
        html = compose_email_html(sample_process, "Olá <Maria>!\n\nLinha", portal_url="https://portal")

        assert "Olá &lt;Maria&gt;!" in html
        assert "Progresso: 20%" in html
        assert "R$ 350.000,00" in html
        assert "SBPE" in html
        assert 'href="https://portal"' in html


class FailingSender(MessageSender):
    """Sender whose every channel fails."""

    def send_email(self, to: str, subject: str, html: str) -> None:
        raise ConnectionError("smtp down")

    def send_sms(self, to: str, text: str) -> None:
        raise ConnectionError("sms down")

    def send_chat_message(self, process_id: str, sender_role: UserRole | str, text: str) -> None:
        raise ConnectionError("chat down")


class TestDispatcher:
    """Tests for NotificationDispatcher."""

    def test_email(self, sample_process: Process) -> None:
        sender = MagicMock(spec=MessageSender)
        dispatcher = NotificationDispatcher(sender, config=NotificationConfig(portal_url="https://p"))

        result = dispatcher.dispatch(sample_process, Channel.EMAIL, "Olá")

        assert result.success is True
        assert result.recipient == "maria@example.com"
        to, subject, html = sender.send_email.call_args.args
        assert to == "maria@example.com"
        assert subject.startswith("Atualização do seu processo")
        assert "https://p" in html

    def test_sms_uses_phone_field(self, sample_process: Process) -> None:
        sender = MagicMock(spec=MessageSender)

        result = NotificationDispatcher(sender).dispatch(sample_process, "sms", "Oi")

        sender.send_sms.assert_called_once_with("+5511988887777", "Oi")
        assert result.channel == Channel.SMS

    def test_chat(self, sample_process: Process) -> None:
        sender = MagicMock(spec=MessageSender)

        NotificationDispatcher(sender).dispatch(sample_process, Channel.CHAT, "Oi", sender_role=UserRole.ADMIN)

        sender.send_chat_message.assert_called_once_with(sample_process.id, UserRole.ADMIN, "Oi")

    def test_channel_specific_senders(self, sample_process: Process) -> None:
        default = MagicMock(spec=MessageSender)
        sms = MagicMock(spec=MessageSender)

        NotificationDispatcher(default, sms=sms).dispatch(sample_process, Channel.SMS, "Oi")

        sms.send_sms.assert_called_once()
        default.send_sms.assert_not_called()

    def test_sender_failure_is_reported_not_raised(self, sample_process: Process) -> None:
        """Test failures come back as results."""
        result = NotificationDispatcher(FailingSender()).dispatch(sample_process, Channel.EMAIL, "Oi")

        assert result.success is False
        assert "smtp down" in result.error
        with pytest.raises(NotificationDeliveryError):
            result.raise_for_status()

    def test_missing_email_is_failure(self, sample_process: Process) -> None:
        sender = MagicMock(spec=MessageSender)

        result = NotificationDispatcher(sender).dispatch(
            replace(sample_process, client_email=None), Channel.EMAIL, "Oi"
        )

        assert result.success is False
        sender.send_email.assert_not_called()

    def test_missing_phone_is_failure(self, sample_process: Process) -> None:
        result = NotificationDispatcher(MagicMock(spec=MessageSender)).dispatch(
            replace(sample_process, extra_fields={}), Channel.SMS, "Oi"
        )

        assert result.success is False

    def test_no_sender(self, sample_process: Process) -> None:
        result = NotificationDispatcher().dispatch(sample_process, Channel.CHAT, "Oi")

        assert result.success is False

    def test_notify_stage_change_uses_template(self, sample_process: Process) -> None:
        sender = MagicMock(spec=MessageSender)
        process = _at(sample_process, StageId.VALUATION, valuation_value="300000")

        results = NotificationDispatcher(sender).notify_stage_change(process, [Channel.CHAT])

        text = sender.send_chat_message.call_args.args[2]
        assert "R$ 300.000" in text
        assert [r.success for r in results] == [True]

    @patch("prime_crm.notifications.dispatcher.compose_stage_message")
    def test_template_failure_reported_per_channel(self, mock_compose: MagicMock, sample_process: Process) -> None:
        """Test a template error becomes failed deliveries instead of raising."""
        mock_compose.side_effect = ArithmeticError("cannot render")
        sender = MagicMock(spec=MessageSender)

        results = NotificationDispatcher(sender).notify_stage_change(sample_process, ["chat", Channel.SMS])

        assert [(r.channel, r.success, r.error) for r in results] == [
            (Channel.CHAT, False, "cannot render"),
            (Channel.SMS, False, "cannot render"),
        ]
        sender.send_chat_message.assert_not_called()
        sender.send_sms.assert_not_called()

    def test_notify_document_event(self, sample_process: Process) -> None:
        sender = MagicMock(spec=MessageSender)
        doc = Document(id="d", name="RG", status=DocumentStatus.REJECTED, feedback="Borrado")

        NotificationDispatcher(sender).notify_document_event(sample_process, doc, "rejected", ["chat"])

        assert "Motivo: Borrado" in sender.send_chat_message.call_args.args[2]

    def test_delivery_result_ok(self) -> None:
        DeliveryResult(Channel.CHAT, success=True).raise_for_status()

    def test_client_phone_alternate_label(self, sample_process: Process) -> None:
        assert client_phone(replace(sample_process, extra_fields={"phone": " 123 "})) == "123"
        assert client_phone(replace(sample_process, extra_fields={})) is None

    def test_value_formatting(self, sample_process: Process) -> None:
        html = compose_email_html(replace(sample_process, value=Decimal("1234.5")), "x", portal_url="u")

        assert "R$ 1.234,50" in html
