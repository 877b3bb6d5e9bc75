"""In-memory email adapter for tests and local runs."""

from uuid import uuid4

from notifications.channel.email_port import FAILED, SENT, DeliveryReceipt, EmailPort, OutgoingEmail


class EmailDeliveryError(Exception):
    pass


class FakeEmailAdapter(EmailPort):
    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.raise_on_send = False
        self.failure_reason = "Email delivery failed"

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Email delivery failed",
        raise_on_send: bool = False,
    ):
        """Make the next sends fail, either with a failed receipt or by raising."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_on_send = raise_on_send

    def send(self, message: OutgoingEmail) -> DeliveryReceipt:
        if self.raise_on_send:
            raise EmailDeliveryError(self.failure_reason)
        if not self.should_succeed:
            return DeliveryReceipt(status=FAILED, error=self.failure_reason)

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": message.to,
                "subject": message.subject,
                "body": message.body,
                "html_body": message.html_body,
                "tags": list(message.tags),
            }
        )
        return DeliveryReceipt(status=SENT, message_id=message_id)
