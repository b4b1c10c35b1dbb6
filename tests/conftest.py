"""
Shared pytest fixtures for the admin console tests.

Provides:
- In-memory SQLite database, recreated for every test
- Seeded permission catalog
- Admin factory and bearer-token headers
- FastAPI TestClient
"""

import os

# Must be set before admin_api.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_PERMISSIONS_ON_STARTUP"] = "false"
os.environ["BCRYPT_ROUNDS"] = "10"

from typing import Dict, Generator, Iterable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import admin_api.models  # noqa: F401
from admin_api.core.security import create_access_token
from admin_api.db.base import Base
from admin_api.db.session import SessionLocal, engine
from admin_api.models.admin import Admin, AdminRole
from admin_api.models.permission import Permission
from admin_api.models.role import Role
from admin_api.schemas.schemas import RoleCreate
from admin_api.services.admin_service import admin_service
from admin_api.services.permission_service import permission_service
from admin_api.services.role_service import role_service


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def permissions(db: Session) -> Dict[str, Permission]:
    """The seeded catalog keyed by permission name."""
    permission_service.seed(db)
    return {p.permission_name: p for p in db.query(Permission).all()}


# ============================================================================
# Admin / Role Factories
# ============================================================================

@pytest.fixture
def make_admin(db: Session):
    counter = {"n": 0}

    def _make(
        email: str = None,
        role: AdminRole = AdminRole.admin,
        password: str = "Password123!",
        full_name: str = "Test Admin",
    ) -> Admin:
        counter["n"] += 1
        return admin_service.create_admin(
            db,
            email=email or f"admin{counter['n']}@example.com",
            password=password,
            full_name=full_name,
            role=role,
        )

    return _make


@pytest.fixture
def make_role(db: Session, permissions: Dict[str, Permission]):
    def _make(
        name: str,
        permission_names: Iterable[str] = (),
        admins: Iterable[Admin] = (),
        **kwargs,
    ) -> Role:
        data = RoleCreate(
            name=name,
            permissions=[permissions[p].id for p in permission_names],
            assigned_admins=[a.id for a in admins],
            **kwargs,
        )
        return role_service.create_role(db, data)

    return _make


@pytest.fixture
def super_admin(make_admin) -> Admin:
    return make_admin(email="root@example.com", role=AdminRole.super_admin, full_name="Root Admin")


@pytest.fixture
def plain_admin(make_admin) -> Admin:
    return make_admin(email="plain@example.com", full_name="Plain Admin")


# ============================================================================
# API Client Fixtures
# ============================================================================

def auth_headers(admin: Admin) -> Dict[str, str]:
    token = create_access_token({
        "sub": admin.id,
        "email": admin.email,
        "role": admin.role.value,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db: Session) -> TestClient:
    """Client without lifespan so startup seeding never runs."""
    from admin_api.main import app

    return TestClient(app)


@pytest.fixture
def headers_for():
    return auth_headers
