"""
API request and response models for SessionGuard REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

JSON keys are camelCase on the wire (accessToken, createdAt); Python
attributes stay snake_case through the to_camel alias generator.

No response model has a password or hash field. That is how the password hash
is kept out of every response.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Account, Identity, Role
from auth.passwords import MAX_PASSWORD_BYTES

MIN_PASSWORD_LENGTH = 8


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    name: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt ignores input beyond 72 bytes; refuse rather than truncate."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountResponse(_WireModel):
    """The created account as returned by POST /register."""

    id: int
    email: str
    name: str
    role: Role
    created_at: Optional[str] = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            email=account.email,
            name=account.name,
            role=account.role,
            created_at=account.created_at,
        )


class UserSummary(_WireModel):
    """{id, name, role} -- the identity shape shared by login and protected routes."""

    id: int
    name: str
    role: Role

    @classmethod
    def from_account(cls, account: Account) -> "UserSummary":
        return cls(id=account.id, name=account.name, role=account.role)

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserSummary":
        return cls(id=identity.account_id, name=identity.name, role=identity.role)


class LoginResponse(_WireModel):
    """Response for POST /login. The refresh token goes in a cookie, never here."""

    user: UserSummary
    access_token: str


class RefreshResponse(_WireModel):
    access_token: str


class MessageResponse(_WireModel):
    message: str
    user: Optional[UserSummary] = None


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
