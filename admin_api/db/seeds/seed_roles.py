"""Seed default roles into the database."""

import logging
from typing import List, Dict, Any

from sqlalchemy.orm import Session

from admin_api.models.permission import Permission, PriorityEnum
from admin_api.models.role import Role, SUPER_ADMIN_ROLE_NAME, normalize_role_name
from admin_api.schemas.schemas import RoleCreate
from admin_api.services.role_service import role_service

logger = logging.getLogger("admin_api")

ROLES_DATA: List[Dict[str, Any]] = [
    {
        "name": SUPER_ADMIN_ROLE_NAME,
        "description": "Full access over every modules and system functions",
        "permissions": [
            "users.view", "users.create", "users.edit", "users.delete", "users.ban",
            "users.unban", "users.verify", "users.grant_admin", "users.revoke_admin",
            "projects.view", "projects.create", "projects.edit", "projects.delete",
            "projects.assign", "projects.approve", "projects.reject",
            "payments.view", "payments.process", "payments.refund", "payments.export",
            "dashboard.view", "analytics.view", "reports.generate",
            "system.settings", "system.logs", "system.backup", "system.maintenance",
            "roles.view", "roles.create", "roles.edit", "roles.delete", "roles.assign",
            "admins.view", "admins.create", "admins.edit", "admins.delete", "admins.roles",
        ],
        "priority": PriorityEnum.critical,
        "is_system_role": True,
    },
    {
        "name": "Admin",
        "description": "Full access over most modules with some restrictions",
        "permissions": [
            "users.view", "users.create", "users.edit", "users.ban", "users.unban", "users.verify",
            "projects.view", "projects.create", "projects.edit", "projects.assign",
            "projects.approve", "projects.reject",
            "payments.view", "payments.process", "payments.export",
            "dashboard.view", "analytics.view", "reports.generate",
            "roles.view", "roles.assign",
            "admins.view",
        ],
        "priority": PriorityEnum.high,
        "is_system_role": True,
    },
    {
        "name": "Project Manager",
        "description": "Manages projects and assigns tasks to team members",
        "permissions": [
            "projects.view", "projects.create", "projects.edit", "projects.assign",
            "projects.approve", "projects.reject",
            "users.view", "users.edit",
            "payments.view", "payments.export",
            "dashboard.view", "analytics.view",
        ],
        "priority": PriorityEnum.medium,
        "is_system_role": False,
    },
    {
        "name": "Support Agent",
        "description": "Handles user support and basic administrative tasks",
        "permissions": [
            "users.view", "users.edit",
            "projects.view",
            "payments.view",
            "dashboard.view",
        ],
        "priority": PriorityEnum.low,
        "is_system_role": False,
    },
    {
        "name": "Finance Manager",
        "description": "Manages payments, refunds, and financial operations",
        "permissions": [
            "payments.view", "payments.process", "payments.refund", "payments.export",
            "users.view",
            "projects.view",
            "dashboard.view", "analytics.view", "reports.generate",
        ],
        "priority": PriorityEnum.high,
        "is_system_role": False,
    },
]


def seed_roles(db: Session) -> int:
    """Create the default roles that do not exist yet.

    Permission names are resolved against the catalog, so the permission
    seed must have run first. Returns the number of roles created.
    """
    ids_by_name = dict(db.query(Permission.permission_name, Permission.id).all())
    created = 0

    for role_data in ROLES_DATA:
        exists = db.query(Role.id).filter(
            Role.name_key == normalize_role_name(role_data["name"])
        ).first()
        if exists:
            continue

        missing = [p for p in role_data["permissions"] if p not in ids_by_name]
        if missing:
            logger.warning(
                "Skipping role '%s': %d permissions missing from catalog",
                role_data["name"], len(missing),
            )
            continue

        role_service.create_role(
            db,
            RoleCreate(
                name=role_data["name"],
                description=role_data["description"],
                permissions=[ids_by_name[p] for p in role_data["permissions"]],
                priority=role_data["priority"],
                is_system_role=role_data["is_system_role"],
                is_active=True,
            ),
            created_by=None,
        )
        created += 1

    logger.info("Seeded %d roles", created)
    return created
