"""
api/routes/v1/auth.py -- Registration, login, token refresh and logout endpoints.

Routes:
  POST /api/v1/auth/register   -- create a USER account; 201
  POST /api/v1/auth/login      -- password login; 201, access token in body,
                                  refresh token in the refreshToken cookie
  GET  /api/v1/auth/refresh    -- rotate the refresh cookie; 200, new access token
  GET  /api/v1/auth/logout     -- clear the refresh slot (requires bearer auth)

Security:
  [H2] register and login are rate-limited per IP (LOGIN_RATE_LIMIT).
  [C1] SessionManager.login runs bcrypt even for unknown emails.
  [M5] Cache-Control: no-store on every response that carries a token.
  The refresh cookie is HttpOnly, SameSite=Strict, Secure (unless
  SECURE_COOKIES=false) and scoped to the refresh path, so the browser only
  ever sends it to GET /auth/refresh.

All endpoints are plain `def`: FastAPI runs them on its thread pool, which
keeps bcrypt and SQL off the event loop.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AccountResponse, LoginRequest, LoginResponse, MessageResponse, RefreshResponse, RegisterRequest, UserSummary
from auth.dependencies import get_current_identity, get_sessions
from auth.models import Identity
from auth.sessions import SessionManager
from core.config import get_settings

_settings = get_settings()

REFRESH_COOKIE_NAME = "refreshToken"
REFRESH_COOKIE_PATH = "/api/v1/auth/refresh"

# Auth policy:
# - POST /api/v1/auth/register:  public
# - POST /api/v1/auth/login:     public
# - GET  /api/v1/auth/refresh:   refresh cookie only (no bearer)
# - GET  /api/v1/auth/logout:    requires bearer access token (get_current_identity)
router = APIRouter()


@router.post("/auth/register", response_model=AccountResponse, status_code=201)
@limiter.limit(_settings.login_rate_limit)  # [H2] below @router: the wrapper itself runs the check
def register(
    request: Request,
    body: RegisterRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> AccountResponse:
    """Create an account with role USER. A taken email is refused with 403."""
    account = sessions.register(body.email, body.password, body.name)
    return AccountResponse.from_account(account)


@router.post("/auth/login", response_model=LoginResponse, status_code=201)
@limiter.limit(_settings.login_rate_limit)  # [H2]
def login(
    request: Request,
    body: LoginRequest,
    sessions: SessionManager = Depends(get_sessions),
) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401 body. The refresh
    token is only ever transported in the cookie.
    """
    result = sessions.login(body.email, body.password)
    resp = JSONResponse(
        status_code=201,
        content=LoginResponse(
            user=UserSummary.from_account(result.account),
            access_token=result.access_token,
        ).model_dump(mode="json", by_alias=True),
    )
    _set_refresh_cookie(resp, result.refresh_token)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get("/auth/refresh", response_model=RefreshResponse)
def refresh(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
) -> JSONResponse:
    """Rotate the refresh cookie and return a fresh access token.

    A missing cookie, a forged or expired token, and a token that was already
    rotated or logged out all get the same 401.
    """
    pair = sessions.rotate(request.cookies.get(REFRESH_COOKIE_NAME))
    resp = JSONResponse(
        status_code=200,
        content=RefreshResponse(access_token=pair.access_token).model_dump(by_alias=True),
    )
    _set_refresh_cookie(resp, pair.refresh_token)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get("/auth/logout", response_model=MessageResponse)
def logout(
    identity: Identity = Depends(get_current_identity),
    sessions: SessionManager = Depends(get_sessions),
) -> JSONResponse:
    """End the session: the stored refresh token is cleared and the cookie deleted.

    The access token itself stays valid until it expires (15 minutes).
    """
    sessions.logout(identity.account_id)
    resp = JSONResponse(content=MessageResponse(message="Logged out successfully").model_dump(exclude_none=True))
    resp.delete_cookie(
        REFRESH_COOKIE_NAME,
        path=REFRESH_COOKIE_PATH,
        secure=_settings.secure_cookies,
        httponly=True,
        samesite="strict",
    )
    return resp


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_refresh_cookie(response, token: str) -> None:
    """Write the refresh token cookie.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="strict": never sent on cross-site requests (CSRF mitigation).
    path: the browser only attaches it to the refresh endpoint.
    max_age: matches the refresh token lifetime.
    """
    response.set_cookie(
        REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=_settings.secure_cookies,
        path=REFRESH_COOKIE_PATH,
        max_age=_settings.refresh_token_expire_seconds,
    )
