"""Kafka sender for notification messages and domain events."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from confluent_kafka import Producer

from prime_crm.config import KafkaConfig
from prime_crm.models.base import Event
from prime_crm.models.enums import Channel, UserRole
from prime_crm.models.process import utcnow
from prime_crm.sinks.base import MessageSender
from prime_crm.sinks.serialization import to_dict

logger = logging.getLogger(__name__)

EVENTS_TOPIC_SUFFIX = "process-events"


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0

    @property
    def throughput(self) -> float:
        """Calculate messages per second achieved."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        duration = self.end_time - self.start_time
        return self.sent / duration if duration > 0 else 0.0


class KafkaSender(MessageSender):
    """Publish outbound messages to per-channel Kafka topics.

    Topics are ``<prefix>.notifications.<channel>``. The sender can also be
    subscribed to the event bus (``publish_event``) to stream domain events
    to ``<prefix>.process-events``.
    """

    def __init__(
        self,
        config: KafkaConfig | str,
        from_email: str = "",
        sms_from_number: str = "",
    ) -> None:
        """Initialize Kafka sender.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        from_email : str
            Sender address attached to e-mail messages.
        sms_from_number : str
            Sender number attached to SMS messages.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.from_email = from_email
        self.sms_from_number = sms_from_number
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats(start_time=time.time())

    def topic_for(self, channel: Channel | str) -> str:
        return f"{self.config.topic_prefix}.notifications.{Channel(channel).value}"

    @property
    def events_topic(self) -> str:
        return f"{self.config.topic_prefix}.{EVENTS_TOPIC_SUFFIX}"

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err is not None:
            self.stats.failed += 1
            logger.error("Delivery failed for %s: %s", msg.topic() if msg else "?", err)
        else:
            self.stats.delivered += 1

    def send_email(self, to: str, subject: str, html: str) -> None:
        self._produce(
            self.topic_for(Channel.EMAIL),
            key=to,
            payload={"from": self.from_email, "to": to, "subject": subject, "html": html},
        )

    def send_sms(self, to: str, text: str) -> None:
        self._produce(
            self.topic_for(Channel.SMS),
            key=to,
            payload={"from": self.sms_from_number, "to": to, "text": text},
        )

    def send_chat_message(self, process_id: str, sender_role: UserRole | str, text: str) -> None:
        self._produce(
            self.topic_for(Channel.CHAT),
            key=process_id,
            payload={"process_id": process_id, "sender_role": UserRole(sender_role).value, "text": text},
        )

    def publish_event(self, event: Event) -> None:
        """Stream a domain event, keyed by the affected process id."""
        self._produce(self.events_topic, key=event.subject, payload=to_dict(event))

    def _produce(self, topic: str, key: str | None, payload: dict[str, Any]) -> None:
        payload = {"queued_at": utcnow().isoformat(), **payload}
        self.producer.produce(
            topic=topic,
            key=key.encode("utf-8") if key else None,
            value=json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8"),
            callback=self._delivery_callback,
        )
        self.stats.sent += 1
        self.producer.poll(0)

    def flush(self, timeout: float = 30.0) -> None:
        """Flush pending messages."""
        self.producer.flush(timeout)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        self.stats.end_time = time.time()
        logger.info(
            "Kafka sender closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
