"""Message sender interface."""

from abc import ABC, abstractmethod

from prime_crm.models.enums import UserRole


class MessageSender(ABC):
    """Delivers outbound messages on the email, SMS and chat channels.

    Implementations raise on failure; the notification dispatcher is
    responsible for catching and reporting delivery errors.
    """

    @abstractmethod
    def send_email(self, to: str, subject: str, html: str) -> None:
        """Send an HTML e-mail."""

    @abstractmethod
    def send_sms(self, to: str, text: str) -> None:
        """Send a text message to a phone number."""

    @abstractmethod
    def send_chat_message(self, process_id: str, sender_role: UserRole | str, text: str) -> None:
        """Post a message to the process's in-app chat."""

    def close(self) -> None:
        """Release any resources held by the sender."""
