"""Fake token verifier for development and testing.

Tokens are looked up in a static token → user id map, normally loaded from
``AUTH_DEV_TOKENS``. Tests can register extra tokens with ``issue()``.
"""

from identity.auth.port import TokenVerifier


class FakeTokenVerifier(TokenVerifier):
    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self.tokens: dict[str, str] = dict(tokens or {})
        self.calls: list[str] = []

    def issue(self, token: str, user_id: str) -> None:
        self.tokens[token] = user_id

    def verify(self, token: str) -> str | None:
        self.calls.append(token)
        return self.tokens.get(token)
