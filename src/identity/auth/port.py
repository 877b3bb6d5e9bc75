"""Token verifier port (abstract interface).

Authentication is owned by an external service. The engine only needs to
turn a bearer token into a user id, so that is the whole contract.
"""

from abc import ABC, abstractmethod


class TokenVerifier(ABC):
    """Abstract bearer token verifier."""

    @abstractmethod
    def verify(self, token: str) -> str | None:
        """Return the user id the token belongs to, or None if it is not valid."""
        ...
