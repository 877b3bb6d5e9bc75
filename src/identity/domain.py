"""Identity context: who owns a cart.

Resolves a request's bearer token and ``x-session-id`` header into a
``UserIdentity`` or ``GuestIdentity``. Token issuance lives elsewhere; this
context only verifies tokens through the ``identity.auth`` port.
"""

from shared.domain import teashop  # noqa: F401
from shared.logging import get_logger

logger = get_logger("identity")
