"""Permission service — seeds and serves the permission catalog."""

import logging
from typing import Dict, Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from admin_api.core.exceptions import ServiceUnavailableError
from admin_api.models.permission import Permission, PriorityEnum

logger = logging.getLogger("admin_api")

USER_MANAGEMENT = "User Management"
PROJECT_MANAGEMENT = "Project Management"
PAYMENT_MANAGEMENT = "Payment Management"
DASHBOARD_ANALYTICS = "Dashboard & Analytics"
SYSTEM_ADMINISTRATION = "System Administration"
ROLE_MANAGEMENT = "Role Management"
ADMIN_MANAGEMENT = "Admin Management"

# (permission_name, group, description, priority)
PERMISSION_CATALOG = [
    ("users.view", USER_MANAGEMENT, "View user list and details", "medium"),
    ("users.create", USER_MANAGEMENT, "Create new user accounts", "high"),
    ("users.edit", USER_MANAGEMENT, "Edit user information", "medium"),
    ("users.delete", USER_MANAGEMENT, "Delete user accounts", "critical"),
    ("users.ban", USER_MANAGEMENT, "Ban user accounts", "high"),
    ("users.unban", USER_MANAGEMENT, "Unban user accounts", "high"),
    ("users.verify", USER_MANAGEMENT, "Verify user accounts", "medium"),
    ("users.grant_admin", USER_MANAGEMENT, "Grant admin privileges", "critical"),
    ("users.revoke_admin", USER_MANAGEMENT, "Revoke admin privileges", "critical"),

    ("projects.view", PROJECT_MANAGEMENT, "View project list and details", "medium"),
    ("projects.create", PROJECT_MANAGEMENT, "Create new projects", "high"),
    ("projects.edit", PROJECT_MANAGEMENT, "Edit project information", "medium"),
    ("projects.delete", PROJECT_MANAGEMENT, "Delete projects", "critical"),
    ("projects.assign", PROJECT_MANAGEMENT, "Assign projects to users", "high"),
    ("projects.approve", PROJECT_MANAGEMENT, "Approve project submissions", "high"),
    ("projects.reject", PROJECT_MANAGEMENT, "Reject project submissions", "high"),

    ("payments.view", PAYMENT_MANAGEMENT, "View payment history and details", "medium"),
    ("payments.process", PAYMENT_MANAGEMENT, "Process payment transactions", "high"),
    ("payments.refund", PAYMENT_MANAGEMENT, "Process payment refunds", "critical"),
    ("payments.export", PAYMENT_MANAGEMENT, "Export payment data", "low"),

    ("dashboard.view", DASHBOARD_ANALYTICS, "Access dashboard and analytics", "medium"),
    ("analytics.view", DASHBOARD_ANALYTICS, "View detailed analytics", "medium"),
    ("reports.generate", DASHBOARD_ANALYTICS, "Generate system reports", "low"),

    ("system.settings", SYSTEM_ADMINISTRATION, "Manage system settings", "critical"),
    ("system.logs", SYSTEM_ADMINISTRATION, "View system logs", "medium"),
    ("system.backup", SYSTEM_ADMINISTRATION, "Manage system backups", "high"),
    ("system.maintenance", SYSTEM_ADMINISTRATION, "Perform system maintenance", "critical"),

    ("roles.view", ROLE_MANAGEMENT, "View role list and details", "medium"),
    ("roles.create", ROLE_MANAGEMENT, "Create new roles", "high"),
    ("roles.edit", ROLE_MANAGEMENT, "Edit role information", "high"),
    ("roles.delete", ROLE_MANAGEMENT, "Delete roles", "critical"),
    ("roles.assign", ROLE_MANAGEMENT, "Assign roles to admins", "high"),

    ("admins.view", ADMIN_MANAGEMENT, "View admin list and details", "medium"),
    ("admins.create", ADMIN_MANAGEMENT, "Create new admin accounts", "critical"),
    ("admins.edit", ADMIN_MANAGEMENT, "Edit admin information", "high"),
    ("admins.delete", ADMIN_MANAGEMENT, "Delete admin accounts", "critical"),
    ("admins.roles", ADMIN_MANAGEMENT, "Manage admin role assignments", "high"),
]


class PermissionService:
    """Seeds the fixed permission catalog and serves read-only views of it."""

    @staticmethod
    def seed(db: Session) -> int:
        """Insert the catalog unless any permission already exists.

        Returns the number of inserted permissions (0 when skipped).
        """
        try:
            existing = db.query(Permission).count()
            if existing > 0:
                logger.info("Permissions already exist, skipping seed")
                return 0

            db.add_all([
                Permission(
                    permission_name=name,
                    permission_group=group,
                    description=description,
                    priority=PriorityEnum(priority),
                    is_active=True,
                )
                for name, group, description, priority in PERMISSION_CATALOG
            ])
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Error seeding permissions")
            raise ServiceUnavailableError("Failed to seed permissions") from e

        logger.info("Seeded %d permissions", len(PERMISSION_CATALOG))
        return len(PERMISSION_CATALOG)

    @staticmethod
    def _active(db: Session, group: Optional[str] = None) -> List[Permission]:
        query = db.query(Permission).filter(Permission.is_active.is_(True))
        if group is not None:
            query = query.filter(Permission.permission_group == group)
        try:
            return query.order_by(
                Permission.permission_group, Permission.permission_name,
            ).all()
        except SQLAlchemyError as e:
            db.rollback()
            raise ServiceUnavailableError("Failed to get permissions") from e

    @staticmethod
    def list_by_group(db: Session) -> Dict[str, Any]:
        """Active permissions grouped by category, plus a flat id index."""
        permissions = PermissionService._active(db)

        grouped: Dict[str, List[Permission]] = {}
        for permission in permissions:
            grouped.setdefault(permission.permission_group, []).append(permission)

        return {
            "grouped": grouped,
            "all_ids": [
                {
                    "id": p.id,
                    "permission_name": p.permission_name,
                    "permission_group": p.permission_group,
                }
                for p in permissions
            ],
        }

    @staticmethod
    def list_all(db: Session) -> List[Permission]:
        """All active permissions sorted by group, then name."""
        return PermissionService._active(db)

    @staticmethod
    def list_by_group_name(db: Session, group: str) -> List[Permission]:
        """Active permissions of one group sorted by name; may be empty."""
        return PermissionService._active(db, group)


permission_service = PermissionService()
