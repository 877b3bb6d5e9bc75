"""FastAPI dependencies that resolve the caller from request headers."""

from fastapi import Header

from identity.auth import get_verifier
from identity.domain import logger
from identity.resolver import Identity, resolve_identity
from shared.errors import UnauthorizedError


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def optional_user_id(authorization: str | None = Header(default=None)) -> str | None:
    """User id for a valid bearer token; anything else is treated as anonymous."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    user_id = get_verifier().verify(token)
    if user_id is None:
        logger.info("token_ignored", reason="unknown token")
    return user_id


def required_user_id(authorization: str | None = Header(default=None)) -> str:
    token = _bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("Authentication required")
    user_id = get_verifier().verify(token)
    if user_id is None:
        logger.info("token_rejected", reason="unknown token")
        raise UnauthorizedError("Invalid or expired token")
    return user_id


def request_identity(
    authorization: str | None = Header(default=None),
    x_session_id: str | None = Header(default=None),
) -> Identity:
    return resolve_identity(
        authenticated_user_id=optional_user_id(authorization),
        session_header=x_session_id,
    )