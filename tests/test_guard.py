"""Tests for the authorization guard (pure decisions, no database)."""
from itertools import product
from types import SimpleNamespace
from uuid import uuid4

import pytest

from portal.core.guard import (
    DenyReason,
    can_approve_or_reject,
    can_assign_role,
    can_change_password,
    can_create_record,
    can_delete_actor,
    can_view_or_edit_record,
    requires_current_password,
)
from portal.core.roles import rank
from portal.db.enums import RecordKind, Role


def actor(role: Role | str, **kwargs):
    return SimpleNamespace(id=kwargs.pop("id", uuid4()), role=role, **kwargs)


def record(owner_id=None, managed_by_id=None):
    return SimpleNamespace(id=uuid4(), owner_id=owner_id, managed_by_id=managed_by_id)


# =============================================================================
# can_assign_role
# =============================================================================

@pytest.mark.parametrize("actor_role,target_role", list(product(Role, Role)))
def test_can_assign_role_property(actor_role, target_role):
    expected = rank(actor_role) > rank(target_role) and not (
        actor_role == Role.TERRITORIAL_MANAGER and target_role == Role.TERRITORIAL_MANAGER
    )
    decision = can_assign_role(actor(actor_role), target_role)
    assert bool(decision) is expected
    if not expected:
        assert decision.reason in (DenyReason.INSUFFICIENT_RANK, DenyReason.SAME_RANK_TERRITORIAL)


def test_territorial_manager_cannot_assign_own_rank():
    decision = can_assign_role(actor(Role.TERRITORIAL_MANAGER), Role.TERRITORIAL_MANAGER)
    assert not decision
    assert decision.reason is DenyReason.SAME_RANK_TERRITORIAL


def test_equal_rank_is_denied_for_every_role():
    for role in Role:
        assert not can_assign_role(actor(role), role)


def test_super_admin_cannot_create_super_admin():
    decision = can_assign_role(actor(Role.SUPER_ADMIN), Role.SUPER_ADMIN)
    assert decision.reason is DenyReason.INSUFFICIENT_RANK


def test_unknown_target_role_is_denied():
    decision = can_assign_role(actor(Role.SUPER_ADMIN), "overlord")
    assert not decision
    assert decision.reason is DenyReason.UNKNOWN_ROLE


def test_actor_with_unknown_role_assigns_nothing():
    for role in Role:
        assert not can_assign_role(actor("ghost"), role)


def test_string_roles_are_accepted():
    assert can_assign_role(actor("admin"), "job_desk")


# =============================================================================
# can_create_record
# =============================================================================

@pytest.mark.parametrize(
    "role,kind,allowed",
    [
        (Role.REPORTER, RecordKind.COMPANY, False),
        (Role.JOB_DESK, RecordKind.COMPANY, True),
        (Role.TERRITORIAL_MANAGER, RecordKind.COMPANY, True),
        (Role.JOB_DESK, RecordKind.REPORTER, True),
        (Role.JOB_DESK, RecordKind.JOB_DESK, False),
        (Role.TERRITORIAL_MANAGER, RecordKind.JOB_DESK, True),
        (Role.TERRITORIAL_MANAGER, RecordKind.AGENT, False),
        (Role.ADMIN, RecordKind.AGENT, True),
        (Role.REPORTER, RecordKind.REPORTER, False),
    ],
)
def test_can_create_record(role, kind, allowed):
    assert bool(can_create_record(actor(role), kind)) is allowed


def test_can_create_user_uses_payload_role():
    tm = actor(Role.TERRITORIAL_MANAGER)
    assert can_create_record(tm, RecordKind.USER, Role.JOB_DESK)
    assert not can_create_record(tm, RecordKind.USER, Role.TERRITORIAL_MANAGER)
    assert not can_create_record(tm, RecordKind.USER, Role.ADMIN)


def test_company_denial_reason():
    decision = can_create_record(actor(Role.REPORTER), RecordKind.COMPANY)
    assert decision.reason is DenyReason.INSUFFICIENT_RANK
    assert "company" in decision.message


# =============================================================================
# can_view_or_edit_record
# =============================================================================

@pytest.mark.parametrize("role", [Role.ADMIN, Role.SUPER_ADMIN])
def test_admins_see_every_record(role):
    assert can_view_or_edit_record(actor(role), record(owner_id=uuid4()))


def test_owner_and_manager_may_edit():
    me = actor(Role.JOB_DESK)
    assert can_view_or_edit_record(me, record(owner_id=me.id))
    assert can_view_or_edit_record(me, record(managed_by_id=me.id))


def test_stranger_is_denied():
    decision = can_view_or_edit_record(actor(Role.TERRITORIAL_MANAGER), record(owner_id=uuid4()))
    assert not decision
    assert decision.reason is DenyReason.NOT_OWNER


def test_orphaned_record_is_admin_only():
    assert not can_view_or_edit_record(actor(Role.TERRITORIAL_MANAGER), record())


# =============================================================================
# Approval / account management
# =============================================================================

@pytest.mark.parametrize("role", list(Role))
def test_can_approve_or_reject(role):
    decision = can_approve_or_reject(actor(role))
    assert bool(decision) is (role in (Role.ADMIN, Role.SUPER_ADMIN))
    if not decision:
        assert decision.reason is DenyReason.NOT_APPROVER


def test_only_super_admin_deletes_actors():
    target = actor(Role.REPORTER)
    assert can_delete_actor(actor(Role.SUPER_ADMIN), target)
    decision = can_delete_actor(actor(Role.ADMIN), target)
    assert decision.reason is DenyReason.NOT_SUPER_ADMIN


def test_super_admin_cannot_delete_self():
    me = actor(Role.SUPER_ADMIN)
    decision = can_delete_actor(me, me)
    assert not decision
    assert decision.reason is DenyReason.SELF_DELETION
    assert decision.message == "cannot delete own account"


def test_change_password_rules():
    me = actor(Role.REPORTER)
    other = actor(Role.REPORTER)
    assert can_change_password(me, me)
    assert can_change_password(actor(Role.ADMIN), other)

    decision = can_change_password(actor(Role.TERRITORIAL_MANAGER), other)
    assert decision.reason is DenyReason.NOT_SELF_AND_NOT_PRIVILEGED
    assert decision.message == "not self and not privileged"


def test_requires_current_password_only_for_self():
    me = actor(Role.ADMIN)
    assert requires_current_password(me, me) is True
    assert requires_current_password(me, actor(Role.REPORTER)) is False
