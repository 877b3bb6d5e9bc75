"""Cart owner resolution.

A cart belongs to exactly one owner: an authenticated user or a guest
session. ``resolve_identity`` turns the raw request inputs into one of the
two value objects, validating and normalizing the session id before it can
be used as a lookup key.
"""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Identifier, String

from identity.domain import teashop
from shared.errors import BadRequestError

SESSION_ID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


@teashop.value_object
class UserIdentity:
    user_id = Identifier(required=True)

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"


@teashop.value_object
class GuestIdentity:
    session_id = String(required=True, max_length=36)

    @invariant.post
    def session_id_must_be_a_uuid4(self):
        if not SESSION_ID_PATTERN.match(self.session_id or ""):
            raise ValidationError({"session_id": ["Invalid session ID format"]})

    @property
    def key(self) -> str:
        return f"guest:{self.session_id}"


Identity = UserIdentity | GuestIdentity


def normalize_session_id(raw: str | None) -> str:
    """Trim, lowercase and validate a guest session id (UUID v4)."""
    if raw is None:
        raise BadRequestError("Invalid session ID format")
    session_id = raw.strip().lower()
    if not SESSION_ID_PATTERN.match(session_id):
        raise BadRequestError("Invalid session ID format")
    return session_id


def resolve_identity(authenticated_user_id: str | None = None, session_header: str | None = None) -> Identity:
    """Derive the cart owner from the request context.

    An authenticated user always wins over a session header; guest carts are
    only moved to the user through an explicit merge.
    """
    if authenticated_user_id:
        return UserIdentity(user_id=authenticated_user_id)
    if session_header is not None and session_header.strip():
        return GuestIdentity(session_id=normalize_session_id(session_header))
    raise BadRequestError("Either authentication or x-session-id header required")


def owner_fields(identity: Identity) -> dict:
    """Owner columns for a command or aggregate: exactly one of user_id / session_id."""
    if isinstance(identity, UserIdentity):
        return {"user_id": identity.user_id, "session_id": None}
    return {"user_id": None, "session_id": identity.session_id}


def owner_of(user_id: str | None, session_id: str | None) -> Identity:
    """Rebuild the owner carried by a command."""
    if user_id:
        return UserIdentity(user_id=user_id)
    if session_id:
        return GuestIdentity(session_id=session_id)
    raise BadRequestError("Either authentication or x-session-id header required")
