"""Channel adapter registry — one singleton adapter per channel type.

Only fake adapters ship here; ``NOTIFICATION_CHANNEL`` selects the adapter
family and anything other than ``fake`` is rejected.
"""

import os
from enum import Enum

from checkout.notification.channel.fake_adapter import FakeChannelAdapter


class ChannelType(Enum):
    EMAIL = "Email"
    WHATSAPP = "WhatsApp"
    PUSH = "Push"


_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str):
    if channel_type not in {c.value for c in ChannelType}:
        raise ValueError(f"Unknown channel type: {channel_type}")

    if channel_type not in _channel_instances:
        adapter = os.environ.get("NOTIFICATION_CHANNEL", "fake")
        if adapter != "fake":
            raise ValueError(f"Unknown notification channel adapter: {adapter}")
        _channel_instances[channel_type] = FakeChannelAdapter(channel_type)

    return _channel_instances[channel_type]


def reset_channels():
    _channel_instances.clear()
