"""Notification dispatcher: channel fan-out with isolated failures.

Delivery is best-effort and happens after the triggering change has been
persisted. A sender failure is logged and reported back as a failed
``DeliveryResult``; it never propagates into the caller's mutation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from prime_crm.config import NotificationConfig
from prime_crm.exceptions import NotificationDeliveryError
from prime_crm.models.enums import Channel, DocumentEventType, UserRole
from prime_crm.models.process import Document, Process
from prime_crm.notifications.templates import (
    compose_document_event_message,
    compose_email_html,
    compose_email_subject,
    compose_stage_message,
)
from prime_crm.sinks.base import MessageSender
from prime_crm.stages.catalog import STAGE_CATALOG, StageCatalog

logger = logging.getLogger(__name__)

PHONE_FIELDS = ("Telefone", "phone")


@dataclass
class DeliveryResult:
    """Outcome of delivering one message on one channel."""

    channel: Channel
    success: bool
    recipient: str | None = None
    error: str | None = None

    def raise_for_status(self) -> None:
        """Raise ``NotificationDeliveryError`` if the delivery failed."""
        if not self.success:
            raise NotificationDeliveryError(
                f"{self.channel.value} delivery to {self.recipient or '<none>'} failed: {self.error}"
            )


def client_phone(process: Process) -> str | None:
    """Phone number recorded in the process's extra fields."""
    for label in PHONE_FIELDS:
        value = process.get_field(label)
        if value:
            return value.strip()
    return None


class NotificationDispatcher:
    """Compose and deliver client notifications.

    A single ``sender`` may serve every channel, or channel-specific senders
    can be given through ``email``, ``sms`` and ``chat``.
    """

    def __init__(
        self,
        sender: MessageSender | None = None,
        *,
        email: MessageSender | None = None,
        sms: MessageSender | None = None,
        chat: MessageSender | None = None,
        config: NotificationConfig | None = None,
        catalog: StageCatalog = STAGE_CATALOG,
    ) -> None:
        self._senders: dict[Channel, MessageSender | None] = {
            Channel.EMAIL: email or sender,
            Channel.SMS: sms or sender,
            Channel.CHAT: chat or sender,
        }
        self.config = config or NotificationConfig()
        self.catalog = catalog

    def dispatch(
        self,
        process: Process,
        channel: Channel | str,
        message: str,
        *,
        sender_role: UserRole | str = UserRole.ATTENDANT,
    ) -> DeliveryResult:
        """Deliver ``message`` about ``process`` on ``channel``.

        Never raises for delivery problems; inspect the returned result or
        call ``raise_for_status()`` on it.
        """
        channel = Channel(channel)
        recipient: str | None = None
        try:
            sender = self._senders.get(channel)
            if sender is None:
                raise NotificationDeliveryError(f"No sender configured for {channel.value}")

            if channel == Channel.EMAIL:
                recipient = process.client_email
                if not recipient:
                    raise NotificationDeliveryError(f"Process {process.id} has no client e-mail")
                sender.send_email(
                    recipient,
                    compose_email_subject(process, self.catalog),
                    compose_email_html(
                        process,
                        message,
                        portal_url=self.config.portal_url,
                        brand_name=self.config.from_name,
                        catalog=self.catalog,
                    ),
                )
            elif channel == Channel.SMS:
                recipient = client_phone(process)
                if not recipient:
                    raise NotificationDeliveryError(f"Process {process.id} has no client phone")
                sender.send_sms(recipient, message)
            else:
                recipient = process.id
                sender.send_chat_message(process.id, sender_role, message)
        except Exception as e:
            logger.warning(
                "Notification via %s for process %s failed: %s",
                channel.value,
                process.id,
                e,
                exc_info=not isinstance(e, NotificationDeliveryError),
                extra={"process_id": process.id, "channel": channel.value},
            )
            return DeliveryResult(channel=channel, success=False, recipient=recipient, error=str(e))

        logger.info(
            "Notification via %s delivered for process %s",
            channel.value,
            process.id,
            extra={"process_id": process.id, "channel": channel.value},
        )
        return DeliveryResult(channel=channel, success=True, recipient=recipient)

    def notify_stage_change(
        self,
        process: Process,
        channels: Iterable[Channel | str],
        message: str | None = None,
        *,
        sender_role: UserRole | str = UserRole.ATTENDANT,
    ) -> list[DeliveryResult]:
        """Send the stage template (or an edited ``message``) on each channel.

        A template that cannot be rendered fails every channel instead of
        raising.
        """
        if message is None:
            return self._compose_and_send(process, channels, lambda: compose_stage_message(process), sender_role)
        return [self.dispatch(process, channel, message, sender_role=sender_role) for channel in channels]

    def notify_document_event(
        self,
        process: Process,
        document: Document,
        event: DocumentEventType | str,
        channels: Iterable[Channel | str],
        *,
        sender_role: UserRole | str = UserRole.ATTENDANT,
    ) -> list[DeliveryResult]:
        return self._compose_and_send(
            process,
            channels,
            lambda: compose_document_event_message(document, event, client_name=process.client_name),
            sender_role,
        )

    def _compose_and_send(
        self,
        process: Process,
        channels: Iterable[Channel | str],
        compose: Callable[[], str],
        sender_role: UserRole | str,
    ) -> list[DeliveryResult]:
        channels = [Channel(channel) for channel in channels]
        try:
            text = compose()
        except Exception as e:
            logger.warning(
                "Could not compose notification for process %s: %s",
                process.id,
                e,
                exc_info=True,
                extra={"process_id": process.id},
            )
            return [DeliveryResult(channel=channel, success=False, error=str(e)) for channel in channels]
        return [self.dispatch(process, channel, text, sender_role=sender_role) for channel in channels]
