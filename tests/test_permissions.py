"""Role helper tests."""
import dataclasses

import pytest

from safestart.core.context import Actor
from safestart.core.exceptions import PermissionDenied
from safestart.core.permissions import can_modify_issue, can_modify_user, require_admin, require_manager
from safestart.models.user import UserRole


def _actor(role: UserRole, user_id: str = "u1") -> Actor:
    return Actor(user_id=user_id, tenant_id="t1", role=role, email=f"{user_id}@t1.com", full_name="Test")


@pytest.mark.parametrize("role,allowed", [
    (UserRole.ADMIN, True),
    (UserRole.SUPERVISOR, True),
    (UserRole.DRIVER, False),
    (UserRole.MECHANIC, False),
])
def test_require_manager(role, allowed):
    if allowed:
        require_manager(_actor(role))
    else:
        with pytest.raises(PermissionDenied) as exc_info:
            require_manager(_actor(role))
        assert exc_info.value.status_code == 403


def test_supervisor_is_not_admin():
    with pytest.raises(PermissionDenied):
        require_admin(_actor(UserRole.SUPERVISOR))


def test_can_modify_user():
    assert can_modify_user(_actor(UserRole.ADMIN), "someone-else")
    assert can_modify_user(_actor(UserRole.DRIVER), "u1")
    assert not can_modify_user(_actor(UserRole.SUPERVISOR), "someone-else")


def test_can_modify_issue():
    assert can_modify_issue(_actor(UserRole.SUPERVISOR), "someone-else")
    assert can_modify_issue(_actor(UserRole.MECHANIC), "u1")
    assert not can_modify_issue(_actor(UserRole.DRIVER), "someone-else")


def test_actor_is_immutable():
    actor = _actor(UserRole.DRIVER)
    with pytest.raises(dataclasses.FrozenInstanceError):
        actor.tenant_id = "t2"
