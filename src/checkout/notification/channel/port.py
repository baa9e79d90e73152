"""Notification channel port — abstract interface for message dispatch."""

from abc import ABC, abstractmethod


class ChannelPort(ABC):
    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> dict:
        """Send a message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
