"""
auth/tokens.py -- Password hashing and the access/refresh token lifecycle.

Security design decisions:
  JWT: python-jose with HS256. Access tokens are signed with SECRET_KEY,
       refresh tokens with REFRESH_SECRET_KEY. Both carry id, username, role,
       iat, exp and a random jti, so two pairs minted in the same second for
       the same user are still distinct strings.

  Two-step gate: an access token is honoured only if (1) it is the token
       currently stored for its user and the row has not passed expires_at,
       and (2) its signature and exp claim verify. Step 1 is what makes
       re-issuance an instant revocation of the previous pair.

  Passwords: bcrypt. The _DUMMY_HASH constant enables timing equalization in
       authenticate_user() so response time does not reveal whether a
       username exists, nor which of the login checks failed.

Lifecycle per user:
  NoToken --issue--> Issued --rotate--> Rotated (self-loop)
  Any state --issue--> Issued (previous pair dropped)
  Any state --revoke--> NoToken

Nothing here retries. Rotating twice yields two different pairs and the first
is gone, so retry decisions belong to the caller.

Layer rule: no imports from api/ or maintenance/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.errors import Forbidden, InvalidRefreshToken, Unauthorized
from auth.models import Identity, Role
from auth.passwords import hash_password, verify_password
from auth.policy import can_login
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("condodesk.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("condodesk_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str) -> User:
    """Check a username/password login and return the User.

    Raises:
        Unauthorized: unknown username, wrong password, or inactive account.
        Forbidden:    the account exists but has not been validated yet.

    The validation check is evaluated before the password result, so an
    unvalidated account gets 403 whatever password was sent. bcrypt runs
    exactly once on every path, so timing does not reveal which check failed.
    """
    user = store.get_by_username(username)
    if user is None or user.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        raise Unauthorized()
    password_ok = verify_password(password, user.hashed_password)
    if not can_login(user.role):
        raise Forbidden("User has not been validated yet.")
    if not password_ok or not user.is_active:
        raise Unauthorized()
    return user


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def _encode(user_id: int, username: str, role: Role, key: str, lifetime: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "username": username,
        "role": int(role),
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(seconds=lifetime),
    }
    return jwt.encode(payload, key, algorithm=_ALGORITHM)


def _decode(token: str, key: str) -> Identity | None:
    try:
        payload = jwt.decode(token, key, algorithms=[_ALGORITHM])
        return Identity(id=int(payload["id"]), username=str(payload["username"]), role=Role(payload["role"]))
    except (JWTError, KeyError, TypeError, ValueError):
        return None


def create_access_token(user_id: int, username: str, role: Role) -> str:
    return _encode(user_id, username, role, _settings.secret_key, _settings.access_token_expire_seconds)


def create_refresh_token(user_id: int, username: str, role: Role) -> str:
    return _encode(user_id, username, role, _settings.refresh_secret_key, _settings.refresh_token_expire_seconds)


def decode_access_token(token: str) -> Identity | None:
    """Verify signature and expiry with the access key. None on any failure."""
    return _decode(token, _settings.secret_key)


def decode_refresh_token(token: str) -> Identity | None:
    """Verify signature and expiry with the refresh key. None on any failure."""
    return _decode(token, _settings.refresh_secret_key)


def _refresh_horizon() -> str:
    return (datetime.now(timezone.utc) + timedelta(seconds=_settings.refresh_token_expire_seconds)).isoformat()


# ---------------------------------------------------------------------------
# Lifecycle operations
# ---------------------------------------------------------------------------


def issue_token_pair(store: UserStore, user_id: int, username: str, role: Role) -> dict[str, str]:
    """Mint a fresh access/refresh pair and make it the user's only live pair.

    Any previous pair for user_id stops validating as soon as this returns.
    """
    access_token = create_access_token(user_id, username, role)
    refresh_token = create_refresh_token(user_id, username, role)
    store.replace_token_pair(user_id, access_token, refresh_token, _refresh_horizon())
    logger.info("Issued token pair for user_id=%d", user_id)
    return {"accessToken": access_token, "refreshToken": refresh_token}


def validate_access_token(store: UserStore, access_token: str) -> bool:
    """Storage-backed check: the token is the live one and its row has not expired.

    Does not decode the token. Callers run decode_access_token() afterwards.
    """
    pair = store.find_token_pair_by_access_token(access_token)
    if pair is None:
        return False
    return datetime.now(timezone.utc) < datetime.fromisoformat(pair.expires_at)


def rotate_token_pair(store: UserStore, refresh_token: str) -> dict[str, str]:
    """Exchange a live refresh token for a brand-new pair.

    The stored row is updated in place rather than deleted and re-inserted.
    The new claims are built from the user record as it is now, so a role
    change or deactivation takes effect at the next rotation.

    Raises InvalidRefreshToken when the token is unknown, fails verification,
    belongs to a user who may no longer log in, or was rotated concurrently.
    """
    pair = store.find_token_pair_by_refresh_token(refresh_token)
    if pair is None:
        raise InvalidRefreshToken()

    claims = decode_refresh_token(refresh_token)
    if claims is None or claims.id != pair.user_id:
        logger.warning("Rejected refresh token for user_id=%d: verification failed", pair.user_id)
        raise InvalidRefreshToken()

    user = store.get_by_id(pair.user_id)
    if user is None or not user.is_active or not can_login(user.role):
        logger.warning("Rejected refresh token for user_id=%d: account not eligible", pair.user_id)
        raise InvalidRefreshToken()

    new_access = create_access_token(user.id, user.username, user.role)
    new_refresh = create_refresh_token(user.id, user.username, user.role)
    if not store.update_token_pair(user.id, refresh_token, new_access, new_refresh, _refresh_horizon()):
        logger.warning("Rejected refresh token for user_id=%d: already rotated", user.id)
        raise InvalidRefreshToken()
    logger.info("Rotated token pair for user_id=%d", user.id)
    return {"accessToken": new_access, "refreshToken": new_refresh}


def revoke_token_pair(store: UserStore, user_id: int) -> bool:
    """Drop the user's live pair. Returns True if one existed."""
    revoked = store.delete_token_pair_by_user(user_id)
    if revoked:
        logger.info("Revoked token pair for user_id=%d", user_id)
    return revoked
