"""Tests for the pure authorization predicates."""
import uuid

import pytest

from wastetrack.core.errors import Forbidden
from wastetrack.models.approval import ApprovalLevel
from wastetrack.models.user import User
from wastetrack.models.waste import WasteEntry
from wastetrack.services import authorization


def _user(role):
    return User(id=uuid.uuid4(), email=f"{role}@example.com", name=role, role=role, is_active=True)


def _level():
    return ApprovalLevel(id=uuid.uuid4(), name="QA", level_order=1, approval_type="sequential", is_active=True)


def _entry(status="pending"):
    return WasteEntry(id=uuid.uuid4(), approval_status=status, current_approval_level=1)


def test_admin_acts_on_any_level():
    assert authorization.can_act(_user("admin"), _level(), set()) is True


def test_approver_needs_assignment():
    level = _level()
    approver = _user("approver")

    assert authorization.can_act(approver, level, set()) is False
    assert authorization.can_act(approver, level, {level.id}) is True


@pytest.mark.parametrize("role", ["engineer", "viewer"])
def test_non_deciding_roles_never_can_approve(role):
    level = _level()
    assert authorization.can_approve_entry(_user(role), _entry(), level, {level.id}) is False


@pytest.mark.parametrize("status", ["approved", "rejected"])
def test_terminal_entries_cannot_be_approved(status):
    assert authorization.can_approve_entry(_user("admin"), _entry(status), _level(), set()) is False


def test_no_remaining_level_open_to_any_decider_only_when_never_laddered():
    assert authorization.can_approve_entry(
        _user("approver"), _entry(), None, set(), direct_open=True
    ) is True
    assert authorization.can_approve_entry(_user("engineer"), _entry(), None, set(), direct_open=True) is False


def test_no_remaining_level_is_admin_only_after_ladder_emptied():
    assert authorization.can_approve_entry(_user("approver"), _entry(), None, set()) is False
    assert authorization.can_approve_entry(_user("admin"), _entry(), None, set()) is True


def test_require_decision_role():
    authorization.require_decision_role(_user("approver"))
    authorization.require_decision_role(_user("admin"))
    with pytest.raises(Forbidden):
        authorization.require_decision_role(_user("engineer"))


def test_require_admin_message():
    with pytest.raises(Forbidden, match="Only admins may delete approval levels"):
        authorization.require_admin(_user("approver"), "delete approval levels")


def test_form_approval_rights():
    approver = _user("approver")

    assert authorization.can_set_form_approval(approver, approver.id) is True
    assert authorization.can_set_form_approval(approver, uuid.uuid4()) is False
    assert authorization.can_set_form_approval(approver, None) is False
    assert authorization.can_set_form_approval(_user("admin"), None) is True
