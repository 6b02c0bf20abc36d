"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores and the
session manager do the work; these types only own the domain shape.

Role is a closed str-Enum. Anything that is not one of the three members is
rejected when parsed (Role("root") raises ValueError), so an invalid role can
never reach an authorization decision.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"

    def is_in(self, roles: Iterable[Role]) -> bool:
        """Set-membership predicate used by authorization (OR semantics)."""
        return self in frozenset(roles)


@dataclass
class Account:
    """A registered principal.

    password_hash never leaves the auth layer -- API response models are built
    field by field and have no slot for it.

    current_refresh_token is the single refresh token considered valid for this
    account. None means logged out (or never logged in). Writing a new value
    supersedes the previous token; there is no revocation list.
    """

    email: str
    name: str
    password_hash: str
    role: Role = Role.USER
    id: int | None = None
    current_refresh_token: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Verified claim set decoded from an access or refresh token."""

    account_id: int
    name: str
    role: Role
    token_type: str  # "access" or "refresh"
    issued_at: int
    expires_at: int
    token_id: str


@dataclass(frozen=True)
class Identity:
    """The request identity attached by the authorization gate."""

    account_id: int
    name: str
    role: Role

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> Identity:
        return cls(account_id=claims.account_id, name=claims.name, role=claims.role)


@dataclass(frozen=True)
class LoginResult:
    account: Account
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
