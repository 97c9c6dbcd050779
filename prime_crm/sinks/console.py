"""Console sender for local development (simulated delivery)."""

from prime_crm.models.enums import Channel, UserRole
from prime_crm.sinks.base import MessageSender


class ConsoleSender(MessageSender):
    """Print outbound messages to stdout instead of delivering them."""

    def __init__(self, from_email: str = "", sms_from_number: str = "", show_body: bool = True) -> None:
        """Initialize console sender.

        Parameters
        ----------
        from_email : str
            Sender address shown in the e-mail header.
        sms_from_number : str
            Sender number shown in the SMS header.
        show_body : bool
            Print message bodies, not only headers.
        """
        self.from_email = from_email
        self.sms_from_number = sms_from_number
        self.show_body = show_body
        self._counts: dict[str, int] = {}

    def send_email(self, to: str, subject: str, html: str) -> None:
        self._header(Channel.EMAIL, f"From: {self.from_email}", f"To: {to}", f"Subject: {subject}")
        if self.show_body:
            print(html)

    def send_sms(self, to: str, text: str) -> None:
        self._header(Channel.SMS, f"From: {self.sms_from_number}", f"To: {to}")
        if self.show_body:
            print(text)

    def send_chat_message(self, process_id: str, sender_role: UserRole | str, text: str) -> None:
        self._header(Channel.CHAT, f"Process: {process_id}", f"Sender: {UserRole(sender_role).value}")
        if self.show_body:
            print(text)

    def close(self) -> None:
        """Print summary."""
        print(f"\n{'='*60}")
        print("Console Sender Summary")
        print("=" * 60)
        for channel, count in self._counts.items():
            print(f"  {channel}: {count} messages")

    def _header(self, channel: Channel, *lines: str) -> None:
        print(f"\n{'='*60}")
        print(f"[simulated {channel.value}]")
        for line in lines:
            print(line)
        print("=" * 60)
        self._counts[channel.value] = self._counts.get(channel.value, 0) + 1
