"""
api/routes/v1/users.py -- Role-gated example routes.

One route per access level so clients (and the integration tests) can check
the gate end to end:

  GET /api/v1/publicRoute             -- no auth
  GET /api/v1/authRoute               -- any valid bearer token
  GET /api/v1/adminRoute              -- ADMIN
  GET /api/v1/moderatorRoute          -- MODERATOR
  GET /api/v1/moderatorAndAdminRoute  -- ADMIN or MODERATOR

The role checks live entirely in the dependencies. None of these handlers
inspects the role itself.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MessageResponse, UserSummary
from auth.dependencies import get_current_identity, require_roles
from auth.models import Identity, Role

router = APIRouter()


@router.get("/publicRoute", response_model=MessageResponse, response_model_exclude_none=True)
async def public_route() -> MessageResponse:
    return MessageResponse(message="public route")


@router.get("/authRoute", response_model=MessageResponse)
async def auth_route(identity: Identity = Depends(get_current_identity)) -> MessageResponse:
    return MessageResponse(message="authorized user route", user=UserSummary.from_identity(identity))


@router.get("/adminRoute", response_model=MessageResponse)
async def admin_route(identity: Identity = Depends(require_roles(Role.ADMIN))) -> MessageResponse:
    return MessageResponse(message="admin route", user=UserSummary.from_identity(identity))


@router.get("/moderatorRoute", response_model=MessageResponse)
async def moderator_route(identity: Identity = Depends(require_roles(Role.MODERATOR))) -> MessageResponse:
    return MessageResponse(message="moderator route", user=UserSummary.from_identity(identity))


@router.get("/moderatorAndAdminRoute", response_model=MessageResponse)
async def moderator_and_admin_route(
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.MODERATOR)),
) -> MessageResponse:
    return MessageResponse(message="admin and moderator shared route", user=UserSummary.from_identity(identity))
