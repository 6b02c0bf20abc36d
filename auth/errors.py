"""
auth/errors.py -- Typed error kinds raised by the session manager and gate.

Each subclass carries a machine-readable code and the client-visible message.
Messages are deliberately generic: "Invalid credentials" covers both unknown
email and wrong password, "Invalid or expired token" covers forged, expired,
malformed, replayed and race-lost tokens. The specific reason goes to the
server log, never to the client.

HTTP status codes are NOT defined here. The transport adapter owns the single
exception -> status table (api/errors.py).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every expected auth failure."""

    code: str = "auth_error"
    message: str = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    message = "Invalid credentials"


class InvalidOrExpiredToken(AuthError):
    code = "invalid_token"
    message = "Invalid or expired token"


# The gate's "Unauthorized" kind is the same failure as a bad token.
Unauthorized = InvalidOrExpiredToken


class Forbidden(AuthError):
    code = "forbidden"
    message = "Forbidden - insufficient role"


class Conflict(AuthError):
    code = "conflict"
    message = "User already exists"


class NotFound(AuthError):
    code = "not_found"
    message = "Account not found"
