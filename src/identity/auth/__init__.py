"""Token verifier factory.

Provides get_verifier() / set_verifier() to swap implementations. The
default is a FakeTokenVerifier with no known tokens; the app factory installs
one seeded from AUTH_DEV_TOKENS.
"""

from identity.auth.fake_adapter import FakeTokenVerifier
from identity.auth.port import TokenVerifier

_current_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    """Return the current token verifier. Defaults to FakeTokenVerifier."""
    global _current_verifier
    if _current_verifier is None:
        _current_verifier = FakeTokenVerifier()
    return _current_verifier


def set_verifier(verifier: TokenVerifier) -> None:
    """Override the active token verifier (useful for tests)."""
    global _current_verifier
    _current_verifier = verifier


def reset_verifier() -> None:
    """Reset to default verifier."""
    global _current_verifier
    _current_verifier = None


__all__ = ["FakeTokenVerifier", "TokenVerifier", "get_verifier", "set_verifier", "reset_verifier"]
