import os

# Test configuration must be in place before config.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["CSRF_ENABLED"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from config.database import Base, get_db
from common.security import create_token
from modules.user.models import User
from modules.admin.models import AdminRole, AdminPermission
from modules.catalog.models import Category, Product
from modules.catalog.service import compose_path


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope='function')
def session():
    """Fresh in-memory database per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def client(session):
    """Test client sharing the test session."""
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ==========================================
# Users
# ==========================================

def _user(session, role, first_name):
    user = User(first_name=first_name, role=role, is_active=True)
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def customer(session):
    """Create a shop customer."""
    return _user(session, "customer", "Aziz")


@pytest.fixture(scope='function')
def admin(session):
    """Create the main admin."""
    return _user(session, "admin", "Bosh admin")


@pytest.fixture(scope='function')
def manager_role(session):
    """Staff role that may only view categories and orders."""
    role = AdminRole(role_name="manager", display_name="Menejer")
    for resource, actions in {"categories": ["view"], "orders": ["view"]}.items():
        perm = AdminPermission(resource=resource)
        perm.actions = actions
        role.permissions.append(perm)
    session.add(role)
    session.commit()
    return role


@pytest.fixture(scope='function')
def manager(session, manager_role):
    """Create a staff user with the manager role."""
    return _user(session, "manager", "Menejer")


@pytest.fixture(scope='function')
def auth_headers():
    """Build a Bearer header for a user."""
    def make(user):
        return {"Authorization": f"Bearer {create_token({'sub': str(user.id)})}"}
    return make


# ==========================================
# Catalog data
# ==========================================

@pytest.fixture(scope='function')
def make_category(session):
    """Create a category (with level/path) under an optional parent."""
    def make(name_uz, parent=None, is_active=True, sort_order=0):
        category = Category(
            name_uz=name_uz,
            name_ru=name_uz,
            parent_id=parent.id if parent else None,
            level=(parent.level + 1) if parent else 0,
            sort_order=sort_order,
            is_active=is_active,
        )
        session.add(category)
        session.flush()
        category.path = compose_path(parent, category.id)
        session.commit()
        return category
    return make


@pytest.fixture(scope='function')
def make_product(session):
    """Create a product in a category."""
    def make(category, name_uz="Mahsulot", price=10000, **kwargs):
        product = Product(
            name_uz=name_uz,
            category_id=category.id if category else None,
            price=price,
            **kwargs,
        )
        session.add(product)
        session.commit()
        return product
    return make
