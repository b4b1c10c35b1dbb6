"""Authorization engine — decides whether an admin may perform an operation.

The decision is a pure predicate over the current database state: admin
records and role assignments are re-read on every check, so a role granted
or revoked after the access token was issued takes effect immediately.

Decision order:

1. Unknown, malformed or deactivated admin -> deny.
2. Super-admin (legacy ``super_admin`` tag, or an active assigned role named
   ``SUPER_ADMIN_ROLE_NAME``) -> allow, whatever was requested.
3. No requirement declared -> allow.
4. Legacy-role requirement -> allow iff the admin's tag is one of the tags.
5. Permission requirement -> allow iff every required permission is in the
   admin's effective permission set.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from admin_api.core.config import settings
from admin_api.core.exceptions import ServiceUnavailableError
from admin_api.db.base import normalize_id
from admin_api.models.admin import Admin, AdminRole
from admin_api.models.role import SUPER_ADMIN_ROLE_NAME, normalize_role_name

logger = logging.getLogger("admin_api")


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as asserted by the access token."""
    admin_id: str
    email: Optional[str] = None
    token_role: Optional[str] = None


@dataclass(frozen=True)
class Requirement:
    """Capability an operation declares: permission names and/or legacy tags."""
    permissions: Tuple[str, ...] = field(default_factory=tuple)
    roles: Tuple[AdminRole, ...] = field(default_factory=tuple)

    @classmethod
    def of(
        cls,
        permissions: Iterable[str] = (),
        roles: Iterable = (),
    ) -> "Requirement":
        return cls(
            permissions=tuple(permissions),
            roles=tuple(AdminRole(r) for r in roles),
        )

    @property
    def is_empty(self) -> bool:
        return not self.permissions and not self.roles


class AuthorizationService:
    """Resolves effective permissions and answers allow/deny questions."""

    @staticmethod
    def load_admin(db: Session, admin_id: str) -> Optional[Admin]:
        """Fetch an active admin, or None when the id is malformed or unknown."""
        admin_id = normalize_id(admin_id)
        if admin_id is None:
            return None
        try:
            admin = db.query(Admin).filter(Admin.id == admin_id).first()
        except SQLAlchemyError as e:
            db.rollback()
            raise ServiceUnavailableError("Authorization store unavailable") from e
        if admin is None or not admin.is_active:
            return None
        return admin

    @staticmethod
    def effective_permissions(admin: Admin) -> Set[str]:
        """Union of active permissions over the admin's active roles."""
        names: Set[str] = set()
        for role in admin.roles:
            if not role.is_active:
                continue
            names.update(p.permission_name for p in role.permissions if p.is_active)
        return names

    @staticmethod
    def legacy_role(admin: Admin, principal: Principal) -> Optional[AdminRole]:
        stored = admin.role
        if principal.token_role and principal.token_role != stored.value:
            logger.warning(
                "Token role claim '%s' differs from stored role '%s' for admin %s",
                principal.token_role, stored.value, admin.id,
            )
        if settings.AUTHZ_TRUST_TOKEN_ROLE:
            try:
                return AdminRole(principal.token_role) if principal.token_role else None
            except ValueError:
                return None
        return stored

    @staticmethod
    def is_super_admin(admin: Admin, legacy: Optional[AdminRole]) -> bool:
        if legacy == AdminRole.super_admin:
            return True
        super_key = normalize_role_name(SUPER_ADMIN_ROLE_NAME)
        return any(r.is_active and r.name_key == super_key for r in admin.roles)

    @staticmethod
    def is_allowed(db: Session, principal: Principal, requirement: Requirement) -> bool:
        """Return True when ``principal`` satisfies ``requirement``.

        Raises:
            ServiceUnavailableError: If the database cannot be read. Callers
                must treat this as a deny.
        """
        admin = AuthorizationService.load_admin(db, principal.admin_id)
        if admin is None:
            logger.info("Denied unknown or inactive admin %s", principal.admin_id)
            return False

        try:
            legacy = AuthorizationService.legacy_role(admin, principal)
            if AuthorizationService.is_super_admin(admin, legacy):
                return True

            if requirement.is_empty:
                return True

            if requirement.roles and legacy not in requirement.roles:
                logger.info("Denied admin %s: legacy role check failed", admin.id)
                return False

            if requirement.permissions:
                granted = AuthorizationService.effective_permissions(admin)
                if not all(p in granted for p in requirement.permissions):
                    logger.info("Denied admin %s: missing permission", admin.id)
                    return False
        except SQLAlchemyError as e:
            db.rollback()
            raise ServiceUnavailableError("Authorization store unavailable") from e

        return True


authorization_service = AuthorizationService()
