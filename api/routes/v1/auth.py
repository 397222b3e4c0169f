"""
api/routes/v1/auth.py -- Registration, login, token refresh and identity endpoints.

Routes:
  POST /api/v1/register  -- create an unvalidated account under a complex
  POST /api/v1/login     -- password login; returns an access/refresh pair
  POST /api/v1/refresh   -- rotate a refresh token into a new pair
  GET  /api/v1/me        -- identity decoded from the access token (requires auth)

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT, 5 per 15 minutes).
  authenticate_user() provides timing equalization -- use it, never inline.
  Unvalidated accounts get 403 on login whatever the password.
  Cache-Control: no-store on every response that carries tokens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
    UserResponse,
)
from auth.dependencies import get_current_identity
from auth.errors import Conflict, Internal, NotFound
from auth.models import Identity, User
from auth.store import UserStore
from auth.passwords import hash_password
from auth.tokens import authenticate_user, issue_token_pair, rotate_token_pair
from maintenance.store import MaintenanceStore

logger = logging.getLogger("condodesk.api.auth")

# Auth policy:
# - POST /api/v1/register: public -- new residents have no credentials yet
# - POST /api/v1/login:    public, rate limited
# - POST /api/v1/refresh:  public -- the refresh token in the body is the credential
# - GET  /api/v1/me:       requires auth (get_current_identity)
router = APIRouter()


def _no_store(content: dict, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=content)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a resident account in role NAO_VALIDADO.

    The complex is resolved by case-insensitive substring match on its name.
    The account cannot log in until an administrator or building manager
    assigns it a role.
    """
    user_store: UserStore = request.app.state.user_store
    maintenance: MaintenanceStore = request.app.state.maintenance

    complex_ = maintenance.find_complex_by_name_substring(body.complex_name)
    if complex_ is None:
        raise NotFound("Complex not found.")

    new_user = User(
        username=body.username,
        name=body.name,
        hashed_password=hash_password(body.password),
        complex_id=complex_.id,
        complement=body.complement,
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise Conflict("A user with that username already exists.") from exc

    created = user_store.get_by_id(user_id)
    if created is None:
        raise Internal("User not found after write.")
    logger.info("Registered user_id=%d in complex_id=%d", user_id, complex_.id)
    return UserResponse.from_user(created)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_RATE_LIMIT)  # innermost, so the router registers the limited function
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a fresh token pair.

    Issuing the pair invalidates any pair the user held before, so logging in
    on a second device signs the first one out.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)

    pair = issue_token_pair(user_store, user.id, user.username, user.role)
    content = LoginResponse(
        access_token=pair["accessToken"],
        refresh_token=pair["refreshToken"],
        id=user.id,
        username=user.username,
        name=user.name,
        role=user.role,
        complex_id=user.complex_id,
    ).model_dump(mode="json", by_alias=True)
    return _no_store(content)


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(request: Request, body: RefreshRequest) -> JSONResponse:
    """Exchange a refresh token for a new access/refresh pair.

    The previous access token stops validating immediately, even if its exp
    claim has not passed.
    """
    user_store: UserStore = request.app.state.user_store
    pair = rotate_token_pair(user_store, body.refresh_token)
    content = TokenPairResponse(
        access_token=pair["accessToken"],
        refresh_token=pair["refreshToken"],
    ).model_dump(mode="json", by_alias=True)
    return _no_store(content)


@router.get("/me", response_model=MeResponse)
def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the identity carried by the current access token."""
    return MeResponse(id=identity.id, username=identity.username, role=identity.role)
