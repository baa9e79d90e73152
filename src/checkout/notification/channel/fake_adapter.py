"""Fake channel adapter — records sent messages for testing."""

from uuid import uuid4

from checkout.notification.channel.port import ChannelPort


class FakeChannelAdapter(ChannelPort):
    """Channel adapter that keeps messages in memory for test assertions."""

    def __init__(self, channel_type: str):
        self.channel_type = channel_type
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = f"{channel_type} delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or f"{self.channel_type} delivery failed"

    def send(self, recipient: str, subject: str, body: str) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"{self.channel_type.lower()}-{uuid4().hex[:12]}"
        self.sent_messages.append(
            {
                "message_id": message_id,
                "recipient": recipient,
                "subject": subject,
                "body": body,
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = f"{self.channel_type} delivery failed"
