"""JSON Lines outbox sender.

Each message is appended to ``<outbox_dir>/<channel>.jsonl`` for a separate
delivery worker to pick up.
"""

import json
from pathlib import Path
from typing import Any

from prime_crm.models.enums import Channel, UserRole
from prime_crm.models.process import utcnow
from prime_crm.sinks.base import MessageSender


class OutboxSender(MessageSender):
    """Write outbound messages to JSON Lines files."""

    def __init__(
        self,
        outbox_dir: str | Path,
        from_email: str = "",
        from_name: str = "",
        sms_from_number: str = "",
    ) -> None:
        self.outbox_dir = Path(outbox_dir)
        self.outbox_dir.mkdir(parents=True, exist_ok=True)
        self.from_email = from_email
        self.from_name = from_name
        self.sms_from_number = sms_from_number
        self._counts: dict[str, int] = {}

    def send_email(self, to: str, subject: str, html: str) -> None:
        self._append(
            Channel.EMAIL,
            {
                "from": {"email": self.from_email, "name": self.from_name},
                "to": to,
                "subject": subject,
                "html": html,
            },
        )

    def send_sms(self, to: str, text: str) -> None:
        self._append(Channel.SMS, {"from": self.sms_from_number, "to": to, "text": text})

    def send_chat_message(self, process_id: str, sender_role: UserRole | str, text: str) -> None:
        self._append(
            Channel.CHAT,
            {"process_id": process_id, "sender_role": UserRole(sender_role).value, "text": text},
        )

    def path_for(self, channel: Channel | str) -> Path:
        return self.outbox_dir / f"{Channel(channel).value}.jsonl"

    @property
    def counts(self) -> dict[str, int]:
        return dict(self._counts)

    def _append(self, channel: Channel, payload: dict[str, Any]) -> None:
        record = {"channel": channel.value, "queued_at": utcnow().isoformat(), **payload}
        with open(self.path_for(channel), "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        self._counts[channel.value] = self._counts.get(channel.value, 0) + 1
