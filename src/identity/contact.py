"""Shopper contact details."""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from identity.domain import teashop

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@teashop.value_object
class EmailAddress:
    address = String(max_length=254, required=True)

    @invariant.post
    def validate_email_address(self):
        if not EMAIL_PATTERN.match(self.address or ""):
            raise ValidationError({"address": ["Invalid email address"]})
