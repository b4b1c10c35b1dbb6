"""Permission model: the catalog of capability identifiers."""

import enum

from sqlalchemy import Column, String, Boolean, DateTime, Enum, func

from admin_api.db.base import Base, generate_uuid


class PriorityEnum(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class Permission(Base):
    """Capability such as ``users.ban``, grouped by functional category.

    ``permission_name`` is case-sensitive, unique and never renamed; a
    permission is retired by clearing ``is_active``, not by deleting it.
    """
    __tablename__ = "permissions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    permission_name = Column(String(100), unique=True, nullable=False, index=True)
    permission_group = Column(String(100), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    priority = Column(Enum(PriorityEnum), default=PriorityEnum.medium, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
