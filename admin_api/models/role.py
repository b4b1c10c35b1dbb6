"""Role model and its association tables."""

from sqlalchemy import (
    Column, String, Boolean, DateTime, Enum, ForeignKey, Table, func,
)
from sqlalchemy.orm import relationship, validates

from admin_api.db.base import Base, generate_uuid
from admin_api.models.permission import PriorityEnum

# Name of the graph role that carries the same wildcard as the legacy super_admin tag
SUPER_ADMIN_ROLE_NAME = "Super Admin"


def normalize_role_name(name: str) -> str:
    """Key used for case-insensitive role name uniqueness."""
    return name.strip().lower()


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)

# Single source for both Role.assigned_admins and Admin.roles
admin_roles = Table(
    "admin_roles",
    Base.metadata,
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("admin_id", ForeignKey("admins.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    """Named bundle of permissions assignable to admins."""
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    name_key = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=False, default="")
    priority = Column(Enum(PriorityEnum), default=PriorityEnum.medium, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_system_role = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(36), ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(String(36), ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    permissions = relationship(
        "Permission",
        secondary=role_permissions,
        lazy="selectin",
        order_by="Permission.permission_name",
    )
    assigned_admins = relationship(
        "Admin",
        secondary=admin_roles,
        back_populates="roles",
        lazy="selectin",
    )
    creator = relationship("Admin", foreign_keys=[created_by])
    updater = relationship("Admin", foreign_keys=[updated_by])

    @validates("name")
    def _sync_name_key(self, key, value):
        self.name_key = normalize_role_name(value)
        return value
