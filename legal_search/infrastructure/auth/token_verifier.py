"""Static bearer-token principal check.

Tokens are issued by the external auth provider and configured out of band;
this adapter only compares them.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable

from legal_search.application.ports import Principal, PrincipalVerifierPort
from legal_search.domain.errors import AuthenticationError

ANONYMOUS = Principal(subject="anonymous", anonymous=True)


class StaticTokenVerifier(PrincipalVerifierPort):
    def __init__(self, tokens: Iterable[str], required: bool = True) -> None:
        self._tokens = tuple(t for t in tokens if t)
        self.required = required

    def verify(self, credentials: str | None) -> Principal:
        if credentials:
            for token in self._tokens:
                if hmac.compare_digest(credentials.encode(), token.encode()):
                    return Principal(subject=_fingerprint(token))
        if not self.required:
            return ANONYMOUS
        if not credentials:
            raise AuthenticationError("missing bearer token")
        raise AuthenticationError("bearer token not accepted")


def _fingerprint(token: str) -> str:
    # subject must be loggable without leaking the token itself
    return "token:" + hashlib.sha256(token.encode()).hexdigest()[:12]
