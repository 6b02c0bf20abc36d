"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer access token is read from the Authorization header only. Refresh
tokens travel in a path-scoped cookie and are never accepted here (the token
type claim enforces that too).

get_current_identity() authenticates and stores the Identity on
request.state.identity. require_roles(...) builds a dependency that first
authenticates, then authorizes against the given role set.

Short-circuit contract: both raise auth.errors exceptions. FastAPI resolves
dependencies before calling the endpoint, so a rejection means the endpoint
body never runs, and the registered exception handler writes the one and only
response.

Layer rule: no imports from core/. auth/dependencies.py may import from fastapi
because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from auth.gate import AuthorizationGate
from auth.models import Identity, Role
from auth.sessions import SessionManager


def get_gate(request: Request) -> AuthorizationGate:
    return request.app.state.gate


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def _extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(request: Request, gate: AuthorizationGate = Depends(get_gate)) -> Identity:
    """Require a valid bearer access token. Raises Unauthorized otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = gate.authenticate(_extract_bearer_token(request))
    request.state.identity = identity
    return identity


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """Build a dependency that requires the caller's role to be one of `roles`.

    Raises Unauthorized without a valid token, Forbidden on a role mismatch.

        @router.get("/admin")
        def route(identity: Identity = Depends(require_roles(Role.ADMIN))): ...
    """
    required = frozenset(roles)

    def dependency(
        identity: Identity = Depends(get_current_identity),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> Identity:
        gate.authorize(identity, required)
        return identity

    return dependency
