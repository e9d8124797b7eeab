"""
Unit tests for per-request permission contexts.
"""

import logging

from modules.admin.models import AdminRole, AdminPermission
from modules.admin.permissions import (
    PERMISSION_REGISTRY, PermissionContext, load_permission_context,
)
from modules.user.models import User


def _role(session, role_name, grants):
    role = AdminRole(role_name=role_name, display_name=role_name.title())
    for resource, actions in grants.items():
        perm = AdminPermission(resource=resource)
        perm.actions = actions
        role.permissions.append(perm)
    session.add(role)
    session.commit()
    return role


class TestLoadPermissionContext:
    """Tests for building a user's permissions."""

    def test_anonymous_has_nothing(self, session):
        """Test that no user means no permissions."""
        ctx = load_permission_context(session, None)
        assert ctx.permissions == {}
        assert ctx.has_permission("categories", "view") is False

    def test_main_admin_has_everything(self, session, admin):
        """Test the main admin bypass."""
        ctx = load_permission_context(session, admin)
        assert ctx.is_main_admin()
        assert ctx.permissions == {r: list(a) for r, a in PERMISSION_REGISTRY.items()}
        assert ctx.can_delete("categories")

    def test_role_grants(self, session, manager):
        """Test that a role grants exactly its actions."""
        ctx = load_permission_context(session, manager)
        assert ctx.can_access("categories")
        assert not ctx.can_create("categories")
        assert not ctx.can_access("products")

    def test_unregistered_actions_dropped(self, session):
        """Test filtering of actions and resources outside the registry."""
        _role(session, "operator", {"categories": ["view", "fly"], "rockets": ["view"]})
        user = User(first_name="Op", role="operator")
        session.add(user)
        session.commit()

        ctx = load_permission_context(session, user)
        assert ctx.permissions == {"categories": ["view"]}

    def test_unknown_resource_logged(self, session, caplog):
        """Test that a grant for an unknown resource is reported."""
        _role(session, "operator", {"rockets": ["view"]})
        user = User(first_name="Op", role="operator")
        session.add(user)
        session.commit()

        with caplog.at_level(logging.WARNING, logger="stroymarket.permissions"):
            load_permission_context(session, user)
        assert "rockets" in caplog.text

    def test_role_without_record(self, session):
        """Test that a role name with no AdminRole row grants nothing."""
        user = User(first_name="X", role="ghost")
        session.add(user)
        session.commit()

        ctx = load_permission_context(session, user)
        assert ctx.role == "ghost"
        assert ctx.permissions == {}

    def test_contexts_are_independent(self, session, admin, manager):
        """Test that two requests never share permission state."""
        first = load_permission_context(session, manager)
        second = load_permission_context(session, manager)
        first.permissions["orders"] = ["delete"]

        assert second.permissions.get("orders") == ["view"]
        assert load_permission_context(session, admin) is not first


class TestPermissionContext:
    """Tests for the context object itself."""

    def test_to_dict(self):
        """Test serialization."""
        ctx = PermissionContext(user_id=3, role="manager", permissions={"orders": ["view"]})
        assert ctx.to_dict() == {
            "user_id": 3,
            "role": "manager",
            "is_main_admin": False,
            "permissions": {"orders": ["view"]},
        }
