"""Message senders for outbound notifications."""

from prime_crm.config import CrmConfig
from prime_crm.sinks.base import MessageSender
from prime_crm.sinks.console import ConsoleSender
from prime_crm.sinks.kafka import KafkaSender, ProducerStats
from prime_crm.sinks.outbox import OutboxSender


def create_sender(config: CrmConfig) -> MessageSender:
    """Build the message sender selected by ``config.notifications.sender``."""
    notifications = config.notifications
    if notifications.sender == "kafka":
        return KafkaSender(
            config.kafka,
            from_email=notifications.from_email,
            sms_from_number=notifications.sms_from_number,
        )
    if notifications.sender == "outbox":
        return OutboxSender(
            notifications.outbox_dir,
            from_email=notifications.from_email,
            from_name=notifications.from_name,
            sms_from_number=notifications.sms_from_number,
        )
    return ConsoleSender(
        from_email=notifications.from_email,
        sms_from_number=notifications.sms_from_number,
    )


__all__ = [
    "ConsoleSender",
    "KafkaSender",
    "MessageSender",
    "OutboxSender",
    "ProducerStats",
    "create_sender",
]
