"""
Admin Module - Models
======================
AdminRole: named staff role (e.g. "manager", "operator")
AdminPermission: per-role resource grant with a string array of actions
SystemSetting: Key-value system configuration
"""

import json

from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from config.database import Base


class AdminRole(Base):
    __tablename__ = "admin_roles"

    id = Column(Integer, primary_key=True)
    role_name = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False)

    permissions = relationship("AdminPermission", back_populates="role", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<AdminRole {self.role_name}>"


class AdminPermission(Base):
    __tablename__ = "admin_permissions"

    id = Column(Integer, primary_key=True)
    role_id = Column(Integer, ForeignKey("admin_roles.id", ondelete="CASCADE"), nullable=False)
    resource = Column(String, nullable=False)

    # Actions: JSON list of action keys, e.g. '["view","create"]'
    _actions = Column("actions", Text, nullable=True)

    role = relationship("AdminRole", back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("role_id", "resource", name="uq_admin_permission_resource"),
    )

    @property
    def actions(self) -> list:
        if not self._actions:
            return []
        try:
            value = json.loads(self._actions)
        except (json.JSONDecodeError, TypeError):
            return []
        return [str(a) for a in value] if isinstance(value, list) else []

    @actions.setter
    def actions(self, value: list):
        self._actions = json.dumps(list(value)) if value else None

    def __repr__(self):
        return f"<AdminPermission {self.resource}={self.actions}>"


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    description = Column(String, nullable=True)

    def __repr__(self):
        return f"<Setting {self.key}={self.value}>"
