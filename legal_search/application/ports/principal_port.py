"""Authenticated-principal check required before any search call.

Session handling lives with the external auth provider; this port only
answers "who is calling" for a presented credential.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Principal:
    subject: str
    anonymous: bool = False


@runtime_checkable
class PrincipalVerifierPort(Protocol):
    def verify(self, credentials: str | None) -> Principal:
        """Resolve a bearer credential to a principal.

        Raises:
            AuthenticationError: If the credential is missing or not accepted
        """
        ...
