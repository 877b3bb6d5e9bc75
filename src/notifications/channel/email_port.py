"""Outgoing email contract.

The storefront only sends transactional mail it renders itself, so the port
takes a finished message and hands back a receipt.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

SENT = "sent"
FAILED = "failed"


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    body: str
    html_body: str | None = None
    # Provider-side labels, e.g. ("order-confirmation", "ALC-251221-A3F9").
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeliveryReceipt:
    status: str
    message_id: str | None = None
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status == SENT


class EmailPort(ABC):
    @abstractmethod
    def send(self, message: OutgoingEmail) -> DeliveryReceipt:
        """Hand one message to the provider.

        A rejected message comes back as a ``failed`` receipt. Transport
        errors may also be raised; callers treat both as undelivered.
        """
        ...
