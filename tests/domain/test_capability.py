"""Tests for role classification and permission checks."""

from uuid import uuid4

import pytest

from staffing_kernel.domain.capability import (
    Actor,
    Capability,
    Permission,
    classify,
    require_permission,
)
from staffing_kernel.exceptions import UnauthorizedError


class TestClassify:

    @pytest.mark.parametrize(
        "role, expected",
        [
            ("owner", Capability.OWNER),
            ("admin", Capability.OWNER),
            ("Admin ", Capability.OWNER),
            ("manager", Capability.MANAGER),
            ("MANAGER", Capability.MANAGER),
            ("staff", Capability.STAFF),
        ],
    )
    def test_known_roles(self, role, expected):
        assert classify(role) == expected

    @pytest.mark.parametrize("role", [None, "", "groomer", "superuser"])
    def test_unknown_roles_are_staff(self, role):
        assert classify(role) == Capability.STAFF


class TestPermissions:

    @pytest.mark.parametrize("capability", [Capability.OWNER, Capability.MANAGER])
    def test_managers_hold_every_permission(self, capability):
        actor = Actor(uuid4(), capability)
        assert actor.is_manager
        for permission in Permission:
            assert actor.can(permission)

    def test_staff_hold_none(self):
        actor = Actor.from_role(uuid4(), "staff")
        assert not actor.is_manager
        assert not any(actor.can(p) for p in Permission)

    def test_require_permission_passes_for_manager(self):
        require_permission(Actor.from_role(uuid4(), "manager"), Permission.VIEW_PAYROLL)

    def test_require_permission_raises_for_staff(self):
        actor = Actor.from_role(uuid4(), "staff")
        with pytest.raises(UnauthorizedError) as exc_info:
            require_permission(actor, Permission.APPROVE_REQUESTS)

        assert exc_info.value.code == "UNAUTHORIZED"
        assert exc_info.value.permission == "approve_requests"
        assert exc_info.value.actor_id == str(actor.actor_id)
