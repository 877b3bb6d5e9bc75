"""Order confirmation dispatch."""

from notifications.channel import get_email_channel
from notifications.channel.email_port import EmailPort, OutgoingEmail
from notifications.domain import logger
from notifications.templates import OrderConfirmationTemplate


class OrderConfirmationSender:
    def __init__(self, channel: EmailPort | None = None):
        self._channel = channel

    @property
    def channel(self) -> EmailPort:
        return self._channel or get_email_channel()

    def send(self, order, to: str | None) -> bool:
        """Email the order summary. Returns False, after logging, if delivery failed."""
        if not to:
            return False
        rendered = OrderConfirmationTemplate.render(
            {
                "order_id": order.id,
                "total": f"{order.total_amount:.2f}",
                "items": [
                    {"name": i.product_name, "quantity": i.quantity, "price": f"{i.price:.2f}"} for i in order.items
                ],
            }
        )
        message = OutgoingEmail(
            to=to,
            subject=rendered["subject"],
            body=rendered["body"],
            tags=("order-confirmation", order.id),
        )
        try:
            receipt = self.channel.send(message)
        except Exception as exc:
            logger.warning("order_confirmation_failed", order_id=order.id, error=str(exc))
            return False

        if not receipt.delivered:
            logger.warning("order_confirmation_failed", order_id=order.id, error=receipt.error)
            return False
        logger.info("order_confirmation_sent", order_id=order.id, message_id=receipt.message_id)
        return True
