"""
User Module - User Model
==========================
Customers and staff share one users table.
`role` is a plain string: "customer", "admin" (main admin) or the
role_name of an AdminRole (e.g. "manager", "operator").
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, BigInteger
from sqlalchemy.sql import func
from config.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # === Identity ===
    telegram_id = Column(BigInteger, unique=True, nullable=True, index=True)
    phone = Column(String(20), unique=True, nullable=True, index=True)

    # === Profile ===
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    # === Role ===
    role = Column(String, default="customer", server_default="customer", nullable=False, index=True)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        parts = [self.first_name or "", self.last_name or ""]
        name = " ".join(p for p in parts if p).strip()
        return name or "Foydalanuvchi"

    @property
    def is_customer(self) -> bool:
        return self.role == "customer"

    @property
    def is_staff(self) -> bool:
        """Anyone with a role other than customer is admin-panel staff."""
        return bool(self.role) and self.role != "customer"

    def __repr__(self):
        return f"<User {self.id} ({self.role})>"
