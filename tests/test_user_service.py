import uuid

import pytest

from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.services.assignment_engine import AssignmentEngine
from fieldcrm.services.errors import NotAuthenticated, NotFound, TargetNotFound, ValidationFailed
from fieldcrm.services.user_service import UserService


def test_deactivated_user_is_hidden_from_pickers(store, operator, team_lead):
    users = UserService(store)

    users.set_active(operator.id, False, team_lead)

    assert operator not in users.list_users(UserRole.CALL_OPERATOR)
    assert operator in users.list_users(UserRole.CALL_OPERATOR, include_inactive=True)


def test_deactivated_operator_cannot_be_assigned(store, make_lead, operator, team_lead):
    lead = make_lead()
    UserService(store).set_active(operator.id, False, team_lead)

    with pytest.raises(TargetNotFound, match="Call operator not found."):
        AssignmentEngine(store).assign(lead.id, operator.id, UserRole.CALL_OPERATOR, team_lead)


def test_reactivation(store, db, make_user, team_lead):
    user = make_user(UserRole.TECHNICIAN, is_active=False)

    UserService(store).set_active(user.id, True, team_lead)

    assert db.get(AppUser, user.id).is_active is True


def test_self_deactivation_is_refused(store, db, team_lead):
    with pytest.raises(ValidationFailed):
        UserService(store).set_active(team_lead.id, False, team_lead)

    assert db.get(AppUser, team_lead.id).is_active is True


def test_unknown_user(store, team_lead):
    with pytest.raises(NotFound):
        UserService(store).set_active(uuid.uuid4(), False, team_lead)


def test_inactive_actor_cannot_change_accounts(store, make_user, operator):
    inactive_admin = make_user(UserRole.TEAM_LEAD, is_active=False)

    with pytest.raises(NotAuthenticated):
        UserService(store).set_active(operator.id, False, inactive_admin)
