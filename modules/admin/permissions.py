"""
Admin Permissions Registry
============================
Central registry of all resources and the actions each one supports,
plus the per-request PermissionContext built from the user's role.

role == "admin" is the main admin and holds every permission.
Any other staff role gets the actions stored for it in admin_permissions.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from modules.admin.models import AdminRole

logger = logging.getLogger("stroymarket.permissions")

MAIN_ADMIN_ROLE = "admin"

# --- Resource registry: resource -> supported actions ---

PERMISSION_REGISTRY = {
    "products":      ["view", "create", "update", "delete"],
    "categories":    ["view", "create", "update", "delete"],
    "orders":        ["view", "create", "update", "delete", "approve", "mark_paid", "mark_debt"],
    "debts":         ["view", "create", "update", "delete", "mark_paid"],
    "statistics":    ["view", "export"],
    "sms":           ["view", "send", "statistics"],
    "workers":       ["view", "create", "update", "delete"],
    "ads":           ["view", "create", "update", "delete"],
    "admins":        ["view", "create", "update", "delete"],
    "kpi":           ["view", "view_all"],
    "notifications": ["view", "send", "realtime"],
}

RESOURCE_LABELS = {
    "products":      "Mahsulotlar",
    "categories":    "Kategoriyalar",
    "orders":        "Buyurtmalar",
    "debts":         "Qarzdorlar",
    "statistics":    "Statistika",
    "sms":           "SMS",
    "workers":       "Ishchilar",
    "ads":           "Reklamalar",
    "admins":        "Adminlar",
    "kpi":           "KPI",
    "notifications": "Bildirishnomalar",
}


def all_permissions() -> Dict[str, List[str]]:
    """Full grant used for the main admin."""
    return {resource: list(actions) for resource, actions in PERMISSION_REGISTRY.items()}


@dataclass
class PermissionContext:
    """Permissions of one user, built per request and never shared across requests."""
    user_id: Optional[int] = None
    role: Optional[str] = None
    permissions: Dict[str, List[str]] = field(default_factory=dict)

    def is_main_admin(self) -> bool:
        return self.role == MAIN_ADMIN_ROLE

    def has_permission(self, resource: str, action: str) -> bool:
        if self.is_main_admin():
            return True
        return action in self.permissions.get(resource, [])

    def can_access(self, resource: str) -> bool:
        return self.has_permission(resource, "view")

    def can_create(self, resource: str) -> bool:
        return self.has_permission(resource, "create")

    def can_update(self, resource: str) -> bool:
        return self.has_permission(resource, "update")

    def can_delete(self, resource: str) -> bool:
        return self.has_permission(resource, "delete")

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role,
            "is_main_admin": self.is_main_admin(),
            "permissions": self.permissions,
        }


def load_permission_context(db: Session, user) -> PermissionContext:
    """
    Build the permission context for `user` (None → anonymous, no permissions).
    Actions not in PERMISSION_REGISTRY for their resource are dropped.
    """
    if user is None:
        return PermissionContext()

    if user.role == MAIN_ADMIN_ROLE:
        return PermissionContext(user_id=user.id, role=user.role, permissions=all_permissions())

    role = db.query(AdminRole).filter(AdminRole.role_name == user.role).first()
    if not role:
        return PermissionContext(user_id=user.id, role=user.role)

    granted: Dict[str, List[str]] = {}
    for perm in role.permissions:
        known = PERMISSION_REGISTRY.get(perm.resource)
        if known is None:
            logger.warning(f"Role {role.role_name!r} grants unknown resource {perm.resource!r}")
            continue
        granted[perm.resource] = [a for a in perm.actions if a in known]

    return PermissionContext(user_id=user.id, role=user.role, permissions=granted)
