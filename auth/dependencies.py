"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and policy.

get_current_identity() is the inbound gate for every protected route:
  1. Extract "Authorization: Bearer <token>"      -> MissingCredential
  2. validate_access_token() against the store      -> InvalidOrExpiredCredential
  3. decode_access_token() signature + exp check    -> InvalidCredential
and returns the decoded Identity.

require_requisition_creator() and require_user_manager() stack a policy
predicate from auth/policy.py on top of the gate and raise Forbidden.

Errors are raised as CondoDeskError subclasses; api/main.py renders them.

Layer rule: no imports from maintenance/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.errors import Forbidden, InvalidCredential, InvalidOrExpiredCredential, MissingCredential
from auth.models import Identity
from auth.policy import can_create_requisition, can_manage_users
from auth.tokens import decode_access_token, validate_access_token


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(request: Request) -> Identity:
    """Require a live, correctly signed access token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(get_current_identity)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise MissingCredential()

    user_store = request.app.state.user_store
    if not validate_access_token(user_store, token):
        raise InvalidOrExpiredCredential()

    identity = decode_access_token(token)
    if identity is None:
        raise InvalidCredential()
    return identity


def require_requisition_creator(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Unvalidated users may authenticate via a stale token but never file requisitions."""
    if not can_create_requisition(identity.role):
        raise Forbidden("User has not been validated yet. You cannot create requisitions.")
    return identity


def require_user_manager(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Admin or building manager. Per-target checks happen in the route."""
    if not can_manage_users(identity.role):
        raise Forbidden("User management requires an administrator or building manager.")
    return identity
