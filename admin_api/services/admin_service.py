"""Admin service — identity and credential lifecycle of admin accounts."""

import logging
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from admin_api.core.config import settings
from admin_api.core.exceptions import (
    ResourceNotFoundError, ServiceUnavailableError, ValidationError,
)
from admin_api.core.security import hash_password, verify_password
from admin_api.db.base import normalize_id
from admin_api.models.admin import Admin, AdminActivityLog, AdminRole
from admin_api.models.role import Role
from admin_api.services.role_service import resolve_ids

logger = logging.getLogger("admin_api")


def _duplicate_email() -> ValidationError:
    return ValidationError("Admin with this email already exists", code="DuplicateEmail")


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(failure)
        raise ServiceUnavailableError(failure) from e


class AdminService:
    """Creates admins, verifies credentials and records login/activity."""

    @staticmethod
    def create_admin(
        db: Session,
        email: str,
        password: str,
        full_name: str,
        role: AdminRole = AdminRole.admin,
        role_ids: Optional[List[str]] = None,
        created_by: Optional[str] = None,
    ) -> Admin:
        """Create an active admin with a bcrypt-hashed password.

        Raises:
            ValidationError: Email already registered (``DuplicateEmail``) or
                a malformed/unknown role id.
        """
        email = email.strip().lower()
        if db.query(Admin.id).filter(Admin.email == email).first() is not None:
            raise _duplicate_email()

        roles = resolve_ids(db, Role, role_ids or [], "role", "UnknownRole")

        admin = Admin(
            email=email,
            hashed_password=hash_password(password),
            full_name=full_name,
            role=AdminRole(role),
            is_active=True,
            created_by=created_by,
        )
        admin.roles = roles
        db.add(admin)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise _duplicate_email() from e
        except SQLAlchemyError as e:
            db.rollback()
            raise ServiceUnavailableError("Failed to create admin") from e
        db.refresh(admin)

        logger.info("Admin %s created by %s", email, created_by or "system")
        return admin

    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[Admin]:
        """Active admin with this email; inactive admins are invisible here."""
        return (
            db.query(Admin)
            .filter(Admin.email == email.strip().lower(), Admin.is_active.is_(True))
            .first()
        )

    @staticmethod
    def find_by_id(db: Session, admin_id: str) -> Optional[Admin]:
        """Admin by id regardless of active state."""
        aid = normalize_id(admin_id)
        if aid is None:
            return None
        return db.query(Admin).filter(Admin.id == aid).first()

    @staticmethod
    def get_admin(db: Session, admin_id: str) -> Admin:
        admin = AdminService.find_by_id(db, admin_id)
        if admin is None:
            raise ResourceNotFoundError("Admin not found")
        return admin

    @staticmethod
    def list_admins(db: Session) -> List[Admin]:
        """All active admins, newest first."""
        return (
            db.query(Admin)
            .filter(Admin.is_active.is_(True))
            .order_by(Admin.created_at.desc())
            .all()
        )

    @staticmethod
    def validate_password(admin: Admin, password: str) -> bool:
        return verify_password(password, admin.hashed_password)

    @staticmethod
    def record_login(db: Session, admin_id: str, ip_address: Optional[str]) -> None:
        """Stamp last login and push onto the capped login history."""
        admin = AdminService.get_admin(db, admin_id)
        now = datetime.now(timezone.utc)

        history = admin.login_history
        history.append(f"{now.isoformat()} - {ip_address or 'unknown'}")
        admin.login_history = history[-settings.LOGIN_HISTORY_LIMIT:]
        admin.last_login_at = now
        admin.last_login_ip = ip_address
        _commit(db, "Failed to record login")

    @staticmethod
    def record_activity(
        db: Session,
        admin_id: str,
        action: str,
        details: str,
        ip_address: Optional[str] = None,
    ) -> AdminActivityLog:
        """Append one entry to the admin's activity log."""
        admin = AdminService.get_admin(db, admin_id)
        entry = AdminActivityLog(
            admin_id=admin.id,
            action=action,
            details=details,
            ip_address=ip_address,
        )
        db.add(entry)
        _commit(db, "Failed to record activity")
        return entry

    @staticmethod
    def list_activity(db: Session, admin_id: str, limit: int = 50) -> List[AdminActivityLog]:
        """Most recent activity entries first."""
        admin = AdminService.get_admin(db, admin_id)
        return (
            db.query(AdminActivityLog)
            .filter(AdminActivityLog.admin_id == admin.id)
            .order_by(AdminActivityLog.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def set_role(db: Session, admin_id: str, role: AdminRole, updated_by: Optional[str] = None) -> Admin:
        """Change the legacy role tag."""
        admin = AdminService.get_admin(db, admin_id)
        admin.role = AdminRole(role)
        admin.updated_by = updated_by
        _commit(db, "Failed to update admin role")
        db.refresh(admin)
        logger.info("Admin %s legacy role set to %s by %s", admin.id, admin.role.value, updated_by)
        return admin

    @staticmethod
    def deactivate(db: Session, admin_id: str, updated_by: Optional[str] = None) -> None:
        """Soft-ban an admin; the record is never deleted."""
        admin = AdminService.get_admin(db, admin_id)
        admin.is_active = False
        admin.updated_by = updated_by
        _commit(db, "Failed to deactivate admin")
        logger.info("Admin %s deactivated by %s", admin.id, updated_by)

    @staticmethod
    def change_password(db: Session, admin_id: str, new_password: str) -> None:
        admin = AdminService.get_admin(db, admin_id)
        admin.hashed_password = hash_password(new_password)
        _commit(db, "Failed to change password")


admin_service = AdminService()
