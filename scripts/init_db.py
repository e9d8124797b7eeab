"""
StroyMarket - Database Initialization
=======================================
Creates all tables if they don't exist and seeds the defaults:
delivery settings and a "manager" staff role.
Safe to run multiple times.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --drop   # Drop and recreate all tables
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import Base, engine, SessionLocal

# Import ALL models so Base.metadata knows about them
from modules.user.models import User  # noqa
from modules.admin.models import AdminRole, AdminPermission, SystemSetting  # noqa
from modules.catalog.models import Category, Product  # noqa
from modules.cart.models import CartItem  # noqa
from modules.order.models import Order, OrderItem  # noqa
from modules.admin.service import DEFAULT_SETTINGS


# Sample staff role: full catalog management, read-only orders
MANAGER_ROLE = {
    "role_name": "manager",
    "display_name": "Menejer",
    "permissions": {
        "products": ["view", "create", "update", "delete"],
        "categories": ["view", "create", "update", "delete"],
        "orders": ["view"],
        "statistics": ["view"],
    },
}


def seed_settings(db):
    added = 0
    for key, (value, description) in DEFAULT_SETTINGS.items():
        if not db.query(SystemSetting).filter(SystemSetting.key == key).first():
            db.add(SystemSetting(key=key, value=value, description=description))
            added += 1
    print(f"  + System settings: {added} added")


def seed_manager_role(db):
    if db.query(AdminRole).filter(AdminRole.role_name == MANAGER_ROLE["role_name"]).first():
        print("  = Role 'manager' already exists")
        return
    role = AdminRole(role_name=MANAGER_ROLE["role_name"], display_name=MANAGER_ROLE["display_name"])
    for resource, actions in MANAGER_ROLE["permissions"].items():
        perm = AdminPermission(resource=resource)
        perm.actions = actions
        role.permissions.append(perm)
    db.add(role)
    print("  + Role 'manager' created")


def init_db(drop_first=False):
    if drop_first:
        print("Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
        print("Done.")

    print("Creating all tables...")
    Base.metadata.create_all(bind=engine)

    print("Seeding defaults...")
    db = SessionLocal()
    try:
        seed_settings(db)
        seed_manager_role(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    from sqlalchemy import inspect
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    print(f"\nTables in database ({len(tables)}):")
    for t in sorted(tables):
        print(f"  - {t}")
    print("\nDatabase initialized successfully!")


if __name__ == "__main__":
    drop = "--drop" in sys.argv
    if drop:
        confirm = input("This will DROP all tables. Type 'yes': ")
        if confirm.strip().lower() != "yes":
            print("Aborted.")
            sys.exit(0)
    init_db(drop_first=drop)
