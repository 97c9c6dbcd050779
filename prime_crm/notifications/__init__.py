"""Client notification templates and dispatch."""

from prime_crm.notifications.dispatcher import DeliveryResult, NotificationDispatcher, client_phone
from prime_crm.notifications.templates import (
    compose_document_event_message,
    compose_email_html,
    compose_email_subject,
    compose_stage_message,
)

__all__ = [
    "DeliveryResult",
    "NotificationDispatcher",
    "client_phone",
    "compose_document_event_message",
    "compose_email_html",
    "compose_email_subject",
    "compose_stage_message",
]
