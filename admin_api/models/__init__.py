"""Models package — import all models so metadata.create_all can discover them."""

from admin_api.models.permission import Permission, PriorityEnum
from admin_api.models.role import Role, role_permissions, admin_roles, SUPER_ADMIN_ROLE_NAME
from admin_api.models.admin import Admin, AdminActivityLog, AdminRole
from admin_api.models.audit_log import AuditLog
from admin_api.models.refresh_token import RefreshToken

__all__ = [
    "Permission", "PriorityEnum",
    "Role", "role_permissions", "admin_roles", "SUPER_ADMIN_ROLE_NAME",
    "Admin", "AdminActivityLog", "AdminRole",
    "AuditLog", "RefreshToken",
]
