"""pt-BR message templates for client notifications.

Each stage has one template fed by the values captured when the process
entered that stage. Optional values that are missing drop their clause
entirely; no placeholder text ever reaches the client.
"""

from __future__ import annotations

from html import escape
from typing import Callable

from prime_crm.exceptions import MissingFeedbackError
from prime_crm.models.enums import DocumentEventType, StageId
from prime_crm.models.process import Document, Process
from prime_crm.pendency import classify, pendency_description
from prime_crm.stages.catalog import STAGE_CATALOG, StageCatalog
from prime_crm.values import display_date, display_number, format_money_br


def _greeting(process: Process, emoji: str = "") -> str:
    name = process.first_name
    head = f"Olá {name}!" if name else "Olá!"
    return f"{head} {emoji}".rstrip()


def _credit_analysis(process: Process) -> str:
    bank = process.get_field("bank_approved") or "banco parceiro"
    credit_value = process.get_field("credit_value")
    value_clause = f" no valor de R$ {display_number(credit_value)}" if credit_value else ""
    return (
        f"{_greeting(process, '🎉')}\n\n"
        f"Temos ótimas notícias! Seu crédito foi aprovado pelo {bank}{value_clause}.\n\n"
        "Próxima etapa: Avaliação do imóvel.\n\n"
        "Qualquer dúvida, estamos à disposição!"
    )


def _valuation(process: Process) -> str:
    valuation_value = process.get_field("valuation_value")
    value_clause = f" com o valor de R$ {display_number(valuation_value)}" if valuation_value else ""
    return (
        f"{_greeting(process, '📋')}\n\n"
        f"A avaliação do imóvel foi concluída{value_clause}.\n\n"
        "Próxima etapa: Análise jurídica da documentação.\n\n"
        "Estamos avançando!"
    )


def _client_pendency(process: Process) -> str:
    description = pendency_description(process)
    detail = f"\n\n{description}" if description else ""
    return (
        f"{_greeting(process, '⚠️')}\n\n"
        f"Identificamos uma pendência na documentação:{detail}\n\n"
        "Por favor, providencie o quanto antes para darmos continuidade ao processo.\n\n"
        "Estamos à disposição para ajudar!"
    )


def _internal_pendency(process: Process) -> str:
    return (
        f"{_greeting(process, '📄')}\n\n"
        "Sua documentação está em análise jurídica. Estamos trabalhando internamente "
        "para resolver algumas questões.\n\n"
        "Em breve retornaremos com atualizações!"
    )


def _legal_analysis(process: Process) -> str:
    pendency = classify(process)
    if pendency.is_client:
        return _client_pendency(process)
    if pendency.is_internal:
        return _internal_pendency(process)
    return (
        f"{_greeting(process, '✅')}\n\n"
        "Análise jurídica concluída com sucesso! Toda a documentação está aprovada.\n\n"
        "Próxima etapa: Emissão do ITBI.\n\n"
        "Estamos quase lá!"
    )


def _itbi_emission(process: Process) -> str:
    itbi_value = process.get_field("itbi_value")
    due_date = process.get_field("itbi_due_date")
    value_clause = f" no valor de R$ {display_number(itbi_value)}" if itbi_value else ""
    due_clause = f" com vencimento em {display_date(due_date)}" if due_date else ""
    return (
        f"{_greeting(process, '💰')}\n\n"
        f"O ITBI foi emitido{value_clause}{due_clause}.\n\n"
        "Após o pagamento, seguiremos para a assinatura do contrato!\n\n"
        "Estamos na reta final!"
    )


def _registry_service(process: Process) -> str:
    office = process.get_field("registry_office")
    protocol = process.get_field("protocol_number")
    office_clause = f" no {office}" if office else ""
    protocol_clause = f", protocolo nº {protocol}" if protocol else ""
    return (
        f"{_greeting(process, '🏛️')}\n\n"
        f"Seu contrato foi encaminhado para registro{office_clause}{protocol_clause}.\n\n"
        "Avisaremos assim que o registro for concluído!"
    )


def _contract_signing(process: Process) -> str:
    signing_date = process.get_field("signing_date")
    if signing_date:
        schedule = f"A assinatura do contrato está agendada para {display_date(signing_date)}."
    else:
        schedule = "Em breve agendaremos a assinatura do contrato."
    return (
        f"{_greeting(process, '🎊')}\n\n"
        "Parabéns! Chegamos à etapa final!\n\n"
        f"{schedule}\n\n"
        "Seu sonho está se tornando realidade!"
    )


def _default(process: Process) -> str:
    return (
        f"{_greeting(process)}\n\n"
        "Seu processo está em andamento. Em breve teremos novidades!\n\n"
        "Qualquer dúvida, estamos à disposição."
    )


STAGE_TEMPLATES: dict[StageId, Callable[[Process], str]] = {
    StageId.CREDIT_ANALYSIS: _credit_analysis,
    StageId.VALUATION: _valuation,
    StageId.LEGAL_ANALYSIS: _legal_analysis,
    StageId.ITBI_EMISSION: _itbi_emission,
    StageId.REGISTRY_SERVICE: _registry_service,
    StageId.CONTRACT_SIGNING: _contract_signing,
    StageId.PENDING_CLIENT: _client_pendency,
    StageId.PENDING_INTERNAL: _internal_pendency,
}


def compose_stage_message(process: Process) -> str:
    """Message announcing the process's current stage."""
    try:
        template = STAGE_TEMPLATES.get(StageId(process.status), _default)
    except ValueError:
        template = _default
    return template(process)


def compose_document_event_message(
    document: Document,
    event: DocumentEventType | str,
    *,
    client_name: str | None = None,
) -> str:
    """Message telling the client a document was approved or rejected.

    Rejections quote the reviewer's feedback verbatim.
    """
    event = DocumentEventType(event)
    first_name = client_name.split(" ")[0] if client_name else ""
    greeting = f"Olá {first_name}!" if first_name else "Olá!"

    if event == DocumentEventType.APPROVED:
        return (
            f"{greeting} ✅\n\n"
            f'O documento "{document.name}" foi aprovado.\n\n'
            "Obrigado por enviar!"
        )

    if not document.feedback or not document.feedback.strip():
        raise MissingFeedbackError(f"Document {document.id} has no rejection reason")
    return (
        f"{greeting} ⚠️\n\n"
        f'O documento "{document.name}" foi recusado.\n\n'
        f"Motivo: {document.feedback}\n\n"
        "Por favor, envie uma nova versão pelo painel."
    )


def compose_email_subject(process: Process, catalog: StageCatalog = STAGE_CATALOG) -> str:
    stage = catalog.lookup(process.status)
    return f"Atualização do seu processo - {stage.title}"


def compose_email_html(
    process: Process,
    message: str,
    *,
    portal_url: str,
    brand_name: str = "Prime Habitação",
    catalog: StageCatalog = STAGE_CATALOG,
) -> str:
    """Wrap a plain-text message in the branded HTML e-mail layout."""
    stage = catalog.lookup(process.status)
    paragraphs = "".join(
        f"<p>{escape(block).replace(chr(10), '<br>')}</p>"
        for block in message.split("\n\n")
        if block.strip()
    )
    progress = stage.progress
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #f59e0b;">{escape(brand_name)}</h2>'
        f"{paragraphs}"
        '<div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f'<h3 style="color: #1f2937; margin-top: 0;">{escape(stage.title)}</h3>'
        f'<p style="color: #4b5563;">{escape(stage.description)}</p>'
        '<div style="background-color: #e5e7eb; height: 8px; border-radius: 4px; margin-top: 10px;">'
        f'<div style="background-color: #f59e0b; height: 8px; border-radius: 4px; width: {progress}%;"></div>'
        "</div>"
        f'<p style="color: #6b7280; font-size: 14px; margin-top: 5px;">Progresso: {progress}%</p>'
        "</div>"
        f"<p>Valor do imóvel: <strong>R$ {format_money_br(process.value)}</strong></p>"
        f"<p>Tipo: <strong>{escape(process.type)}</strong></p>"
        '<p style="margin-top: 30px;">Acesse seu painel para mais detalhes:<br>'
        f'<a href="{escape(portal_url)}" style="color: #f59e0b; text-decoration: none;">{escape(portal_url)}</a></p>'
        "</div>"
    )
