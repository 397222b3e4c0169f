"""
api/routes/v1/users.py -- User triage for administrators and building managers.

Routes:
  GET    /api/v1/users                -- list users of the actor's complex (?role= filter)
  PATCH  /api/v1/users/{user_id}/role -- change a user's role (promote / demote / validate)
  DELETE /api/v1/users/{user_id}      -- delete a user (ADMIN_COMPLEX only)

Every route requires ADMIN_COMPLEX or SINDICO (require_user_manager). Per-target
rules come from auth/policy.py:
  can_modify_user -- SINDICO may only move residents and unvalidated users,
                     and only into non-managerial roles.
  can_delete_user -- ADMIN_COMPLEX only, never another ADMIN_COMPLEX.

Tenant scoping: a target outside the actor's complex is reported as 404, the
same as a missing user, so ids in other complexes cannot be probed.
Nobody may change their own role or delete themselves.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.models import RoleUpdate, UserResponse
from auth.dependencies import require_user_manager
from auth.errors import Forbidden, InvalidOrExpiredCredential, Internal, NotFound, ValidationError
from auth.models import Identity, Role, User
from auth.policy import can_delete_user, can_modify_user
from auth.store import UserStore
from auth.tokens import revoke_token_pair

logger = logging.getLogger("condodesk.api.users")

# Auth policy:
# - all routes: require_user_manager (ADMIN_COMPLEX or SINDICO)
router = APIRouter()


def _actor_and_target(store: UserStore, identity: Identity, user_id: int) -> tuple[User, User]:
    actor = store.get_by_id(identity.id)
    if actor is None:
        raise InvalidOrExpiredCredential()
    target = store.get_by_id(user_id)
    if target is None or target.complex_id != actor.complex_id:
        raise NotFound("User not found.")
    return actor, target


@router.get("/users", response_model=list[UserResponse])
def list_users(
    request: Request,
    role: Optional[Role] = None,
    identity: Identity = Depends(require_user_manager),
) -> list[UserResponse]:
    """List users in the actor's complex, e.g. ?role=9 for accounts awaiting validation."""
    user_store: UserStore = request.app.state.user_store
    actor = user_store.get_by_id(identity.id)
    if actor is None:
        raise InvalidOrExpiredCredential()
    users = user_store.list_users(complex_id=actor.complex_id, role=role)
    return [UserResponse.from_user(u) for u in users]


@router.patch("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    request: Request,
    user_id: int,
    body: RoleUpdate,
    identity: Identity = Depends(require_user_manager),
) -> UserResponse:
    """Assign a new role to a user.

    The target's token pair is revoked so the next request carries claims with
    the new role; they must log in again.
    """
    user_store: UserStore = request.app.state.user_store
    actor, target = _actor_and_target(user_store, identity, user_id)

    if target.id == actor.id:
        raise ValidationError("You cannot change your own role.")
    if not can_modify_user(identity.role, target.role, body.role):
        raise Forbidden("You are not allowed to assign this role to this user.")

    user_store.update_user(target.id, role=body.role)
    revoke_token_pair(user_store, target.id)
    logger.info(
        "user_id=%d changed role of user_id=%d from %s to %s",
        actor.id,
        target.id,
        target.role.name,
        body.role.name,
    )

    updated = user_store.get_by_id(target.id)
    if updated is None:
        raise Internal("User not found after write.")
    return UserResponse.from_user(updated)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: int,
    identity: Identity = Depends(require_user_manager),
) -> Response:
    """Permanently delete a user together with their token pair."""
    user_store: UserStore = request.app.state.user_store
    actor, target = _actor_and_target(user_store, identity, user_id)

    if target.id == actor.id:
        raise ValidationError("You cannot delete your own account.")
    if not can_delete_user(identity.role, target.role):
        raise Forbidden("You are not allowed to delete this user.")

    user_store.delete_user(target.id)
    logger.info("user_id=%d deleted user_id=%d", actor.id, target.id)
    return Response(status_code=204)
