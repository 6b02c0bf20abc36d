"""
auth/tokens.py -- Signing and verification of access and refresh tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the context's secret key
       and carry user_id, name, role, a type marker ("access" / "refresh"),
       iat, exp and a random jti. Verification returns None on any failure --
       callers turn that into the error kind that fits their operation.

  type claim: both token kinds share one secret, so the type marker is what
       stops a refresh token from being accepted as a bearer credential (and an
       access token from being rotated).

  jti claim: two tokens minted for the same account in the same second would
       otherwise be byte-identical. A random jti makes every issued token
       distinct, which the refresh-slot equality check depends on.

  Secret: passed in by the caller (see auth/context.py). This module never
       reads settings, so tests can build as many codecs as they like.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from collections.abc import Callable
from typing import Any

from jose import JWTError, jwt

from auth.models import Account, Role, TokenClaims

logger = logging.getLogger("sessionguard.auth")

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"


class TokenCodec:
    """Stateless JWT signer/verifier bound to one secret.

    Usage:
        codec = TokenCodec(secret_key, access_ttl=900, refresh_ttl=604800)
        token = codec.issue_access(account)
        claims = codec.verify(token, expected_type="access")  # None if invalid
    """

    def __init__(
        self,
        secret_key: str,
        access_ttl: int = 15 * 60,
        refresh_ttl: int = 7 * 24 * 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret_key = secret_key
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, claims: dict[str, Any], ttl: int) -> str:
        """Sign `claims` plus iat/exp/jti into a compact token valid for `ttl` seconds."""
        issued_at = int(self._clock())
        payload = {
            **claims,
            "iat": issued_at,
            "exp": issued_at + ttl,
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def issue_access(self, account: Account) -> str:
        return self.issue(_identity_claims(account, ACCESS), self.access_ttl)

    def issue_refresh(self, account: Account) -> str:
        return self.issue(_identity_claims(account, REFRESH), self.refresh_ttl)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str | None, expected_type: str | None = None) -> TokenClaims | None:
        """Decode and verify a token. Returns the claims or None on any failure.

        Failure covers: bad signature, malformed structure, expiry, missing or
        mistyped claims, an unknown role, and a type other than expected_type.
        Never raises for these -- an invalid token is just "no claims".
        """
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError as exc:
            logger.debug("Token rejected (%s): %s", self.fingerprint(token), exc)
            return None

        claims = _payload_to_claims(payload)
        if claims is None:
            logger.debug("Token rejected (%s): malformed claims", self.fingerprint(token))
            return None
        if expected_type is not None and claims.token_type != expected_type:
            logger.debug(
                "Token rejected (%s): type %r, expected %r",
                self.fingerprint(token),
                claims.token_type,
                expected_type,
            )
            return None
        return claims

    def is_still_valid(self, token: str | None, expected_type: str | None = REFRESH) -> bool:
        """Non-throwing predicate: is this token cryptographically valid right now?"""
        return self.verify(token, expected_type=expected_type) is not None

    @staticmethod
    def fingerprint(token: str | None) -> str:
        """Short SHA-256 prefix of a token, safe to put in log lines."""
        if not token:
            return "-"
        return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _identity_claims(account: Account, token_type: str) -> dict[str, Any]:
    return {
        "sub": str(account.id),
        "user_id": account.id,
        "name": account.name,
        "role": account.role.value,
        "type": token_type,
    }


def _payload_to_claims(payload: dict[str, Any]) -> TokenClaims | None:
    try:
        account_id = payload["user_id"]
        name = payload["name"]
        token_type = payload["type"]
        issued_at = payload["iat"]
        expires_at = payload["exp"]
        token_id = payload["jti"]
        role = Role(payload["role"])
    except (KeyError, ValueError):
        return None
    # bool is an int subclass; a "user_id": true claim is not an account id.
    if not isinstance(account_id, int) or isinstance(account_id, bool):
        return None
    if not isinstance(name, str) or token_type not in (ACCESS, REFRESH):
        return None
    return TokenClaims(
        account_id=account_id,
        name=name,
        role=role,
        token_type=token_type,
        issued_at=int(issued_at),
        expires_at=int(expires_at),
        token_id=str(token_id),
    )
