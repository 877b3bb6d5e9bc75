"""Email channel registry.

``get_email_channel()`` falls back to the in-memory adapter until a provider
adapter is installed with ``set_email_channel()``.
"""

from notifications.channel.email_port import DeliveryReceipt, EmailPort, OutgoingEmail
from notifications.channel.fake_email import FakeEmailAdapter

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    global _email_channel
    if _email_channel is None:
        _email_channel = FakeEmailAdapter()
    return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    _email_channel = channel


def reset_channels():
    global _email_channel
    _email_channel = None


__all__ = [
    "DeliveryReceipt",
    "EmailPort",
    "FakeEmailAdapter",
    "OutgoingEmail",
    "get_email_channel",
    "reset_channels",
    "set_email_channel",
]
