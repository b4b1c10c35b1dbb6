"""Seed the super-admin and default admin accounts from settings."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from admin_api.core.config import settings
from admin_api.models.admin import Admin, AdminRole
from admin_api.models.role import Role, SUPER_ADMIN_ROLE_NAME, normalize_role_name
from admin_api.services.admin_service import admin_service

logger = logging.getLogger("admin_api")


def _role_id(db: Session, name: str) -> Optional[str]:
    row = db.query(Role.id).filter(Role.name_key == normalize_role_name(name)).first()
    return row.id if row else None


def _ensure_admin(
    db: Session,
    email: str,
    password: str,
    full_name: str,
    role: AdminRole,
    graph_role: str,
) -> bool:
    if db.query(Admin.id).filter(Admin.email == email.lower()).first():
        logger.info("Admin '%s' already exists, skipping", email)
        return False

    role_id = _role_id(db, graph_role)
    admin_service.create_admin(
        db,
        email=email,
        password=password,
        full_name=full_name,
        role=role,
        role_ids=[role_id] if role_id else [],
        created_by="system",
    )
    return True


def seed_super_admin(db: Session) -> int:
    """Create the super admin and a regular admin if not already present.

    Returns the number of accounts created.
    """
    created = 0
    if _ensure_admin(
        db,
        settings.SUPER_ADMIN_EMAIL,
        settings.SUPER_ADMIN_PASSWORD,
        "Super Administrator",
        AdminRole.super_admin,
        SUPER_ADMIN_ROLE_NAME,
    ):
        created += 1
    if _ensure_admin(
        db,
        settings.DEFAULT_ADMIN_EMAIL,
        settings.DEFAULT_ADMIN_PASSWORD,
        "Administrator",
        AdminRole.admin,
        "Admin",
    ):
        created += 1
    return created
