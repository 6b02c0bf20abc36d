"""
auth/gate.py -- Per-request authentication and role authorization.

Two composable checks:
  authenticate(bearer_token) -> Identity       raises Unauthorized
  authorize(identity, required_roles) -> None  raises Unauthorized / Forbidden

Both signal failure by raising. In the FastAPI adapter (auth/dependencies.py)
they run as dependencies, so a raised error aborts the request before the
endpoint body runs and the exception handler writes the only response.

Authentication is purely cryptographic -- no database lookup. An access token
stays usable until it expires even if the account logs out in the meantime.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from auth.errors import Forbidden, Unauthorized
from auth.models import Identity, Role
from auth.tokens import ACCESS, TokenCodec

logger = logging.getLogger("sessionguard.auth")


class AuthorizationGate:
    def __init__(self, codec: TokenCodec) -> None:
        self._codec = codec

    def authenticate(self, bearer_token: str | None) -> Identity:
        claims = self._codec.verify(bearer_token, expected_type=ACCESS)
        if claims is None:
            raise Unauthorized()
        return Identity.from_claims(claims)

    @staticmethod
    def authorize(identity: Identity | None, required_roles: Iterable[Role]) -> None:
        """Accept if identity.role is any of required_roles. An empty set accepts nobody."""
        if identity is None:
            raise Unauthorized()
        if not identity.role.is_in(required_roles):
            logger.info("Account %s with role %s denied", identity.account_id, identity.role.value)
            raise Forbidden()
