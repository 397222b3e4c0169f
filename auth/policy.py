"""
auth/policy.py -- Role-based authorization predicates.

Pure functions over Role values: no store access, no request objects, no
side effects. Route handlers call them after the token gate has produced an
Identity and turn a False into a Forbidden error.

Managerial tier: every role at or above RESPONSAVEL_MANUTENCAO. A SINDICO may
only act on users outside that tier and may not move anyone into it.
"""

from __future__ import annotations

from auth.models import Role

_MANAGERIAL_FLOOR = Role.RESPONSAVEL_MANUTENCAO

_USER_MANAGERS = frozenset({Role.ADMIN_COMPLEX, Role.SINDICO})


def can_login(role: Role) -> bool:
    """Unvalidated accounts cannot authenticate, even with the right password."""
    return role != Role.NAO_VALIDADO


def can_create_requisition(role: Role) -> bool:
    return role != Role.NAO_VALIDADO


def can_view_all_requisitions(role: Role) -> bool:
    """Managerial roles see every requisition of their complex; the rest only their own."""
    return not role.is_below(_MANAGERIAL_FLOOR)


def can_manage_users(role: Role) -> bool:
    """Whether the role may list users and invoke role changes at all."""
    return role in _USER_MANAGERS


def can_modify_user(actor: Role, target: Role, new_role: Role) -> bool:
    """Decide whether actor may change target's role to new_role.

    ADMIN_COMPLEX is unrestricted. SINDICO may only touch residents and
    unvalidated users, and may only assign roles outside the managerial tier.
    """
    if actor == Role.ADMIN_COMPLEX:
        return True
    if actor == Role.SINDICO:
        return target.is_below(_MANAGERIAL_FLOOR) and new_role.is_below(_MANAGERIAL_FLOOR)
    return False


def can_delete_user(actor: Role, target: Role) -> bool:
    """Only ADMIN_COMPLEX deletes, and never another ADMIN_COMPLEX."""
    return actor == Role.ADMIN_COMPLEX and target != Role.ADMIN_COMPLEX
