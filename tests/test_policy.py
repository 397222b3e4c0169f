"""Unit tests for auth/policy.py and the Role ordering it relies on.

Covers:
- Role ordering helpers (outranks / is_below)
- can_login and can_create_requisition block only NAO_VALIDADO
- can_modify_user: ADMIN_COMPLEX unrestricted, SINDICO limited to the
  non-managerial tier on both target and new role, everyone else denied
- can_delete_user: ADMIN_COMPLEX only, never against another ADMIN_COMPLEX
- can_view_all_requisitions: managerial tier only
"""

import pytest

from auth.models import Role
from auth.policy import (
    can_create_requisition,
    can_delete_user,
    can_login,
    can_manage_users,
    can_modify_user,
    can_view_all_requisitions,
)

ALL_ROLES = list(Role)
NON_MANAGERIAL = [Role.MORADOR, Role.NAO_VALIDADO]
MANAGERIAL = [Role.ADMIN_COMPLEX, Role.SINDICO, Role.SUBSINDICO, Role.RESPONSAVEL_MANUTENCAO]


class TestRoleOrdering:
    def test_privilege_order_is_total_and_fixed(self):
        ordered = sorted(Role, key=lambda r: r.value)
        assert ordered == [
            Role.ADMIN_COMPLEX,
            Role.SINDICO,
            Role.SUBSINDICO,
            Role.RESPONSAVEL_MANUTENCAO,
            Role.MORADOR,
            Role.NAO_VALIDADO,
        ]

    def test_unvalidated_is_stored_as_nine(self):
        assert Role.NAO_VALIDADO == 9

    def test_outranks_and_is_below_are_strict(self):
        assert Role.ADMIN_COMPLEX.outranks(Role.SINDICO)
        assert Role.MORADOR.is_below(Role.RESPONSAVEL_MANUTENCAO)
        assert not Role.SINDICO.outranks(Role.SINDICO)
        assert not Role.SINDICO.is_below(Role.SINDICO)


class TestLoginAndRequisitionGates:
    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_can_create_requisition(self, role):
        assert can_create_requisition(role) is (role != Role.NAO_VALIDADO)

    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_can_login(self, role):
        assert can_login(role) is (role != Role.NAO_VALIDADO)

    @pytest.mark.parametrize("role", MANAGERIAL)
    def test_managerial_roles_see_all_requisitions(self, role):
        assert can_view_all_requisitions(role)

    @pytest.mark.parametrize("role", NON_MANAGERIAL)
    def test_residents_see_only_their_own(self, role):
        assert not can_view_all_requisitions(role)


class TestModifyUser:
    @pytest.mark.parametrize("new_role", ALL_ROLES)
    def test_sindico_can_never_touch_an_admin(self, new_role):
        assert not can_modify_user(Role.SINDICO, Role.ADMIN_COMPLEX, new_role)

    @pytest.mark.parametrize("target", MANAGERIAL)
    @pytest.mark.parametrize("new_role", ALL_ROLES)
    def test_sindico_cannot_touch_managerial_targets(self, target, new_role):
        assert not can_modify_user(Role.SINDICO, target, new_role)

    @pytest.mark.parametrize("target", NON_MANAGERIAL)
    @pytest.mark.parametrize("new_role", MANAGERIAL)
    def test_sindico_cannot_promote_into_managerial_tier(self, target, new_role):
        assert not can_modify_user(Role.SINDICO, target, new_role)

    @pytest.mark.parametrize("target", NON_MANAGERIAL)
    @pytest.mark.parametrize("new_role", NON_MANAGERIAL)
    def test_sindico_can_move_residents_within_resident_tier(self, target, new_role):
        assert can_modify_user(Role.SINDICO, target, new_role)

    def test_admin_can_demote_a_sindico(self):
        assert can_modify_user(Role.ADMIN_COMPLEX, Role.SINDICO, Role.MORADOR)

    @pytest.mark.parametrize("target", ALL_ROLES)
    @pytest.mark.parametrize("new_role", ALL_ROLES)
    def test_admin_is_unrestricted(self, target, new_role):
        assert can_modify_user(Role.ADMIN_COMPLEX, target, new_role)

    @pytest.mark.parametrize(
        "actor", [Role.SUBSINDICO, Role.RESPONSAVEL_MANUTENCAO, Role.MORADOR, Role.NAO_VALIDADO]
    )
    def test_other_roles_cannot_modify_anyone(self, actor):
        assert not can_modify_user(actor, Role.NAO_VALIDADO, Role.MORADOR)

    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_can_manage_users(self, role):
        assert can_manage_users(role) is (role in (Role.ADMIN_COMPLEX, Role.SINDICO))


class TestDeleteUser:
    def test_admin_cannot_delete_admin(self):
        assert not can_delete_user(Role.ADMIN_COMPLEX, Role.ADMIN_COMPLEX)

    def test_admin_can_delete_resident(self):
        assert can_delete_user(Role.ADMIN_COMPLEX, Role.MORADOR)

    def test_sindico_cannot_delete(self):
        assert not can_delete_user(Role.SINDICO, Role.MORADOR)

    @pytest.mark.parametrize("actor", [r for r in Role if r != Role.ADMIN_COMPLEX])
    @pytest.mark.parametrize("target", ALL_ROLES)
    def test_only_admin_deletes(self, actor, target):
        assert not can_delete_user(actor, target)
