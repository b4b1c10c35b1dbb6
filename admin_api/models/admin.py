"""Admin model: administrative principals and their activity trail."""

import enum
import json

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, func,
)
from sqlalchemy.orm import relationship

from admin_api.db.base import Base, generate_uuid
from admin_api.models.role import admin_roles


class AdminRole(str, enum.Enum):
    """Legacy single-role tag kept alongside the role graph."""
    super_admin = "super_admin"
    admin = "admin"


class Admin(Base):
    """Administrative account with legacy role tag and assigned roles."""
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(Enum(AdminRole), default=AdminRole.admin, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    last_login_ip = Column(String(45), nullable=True)
    login_history_json = Column(Text, nullable=True)  # JSON list, newest last
    created_by = Column(String(50), nullable=True)  # admin id or "system"
    updated_by = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    roles = relationship(
        "Role",
        secondary=admin_roles,
        back_populates="assigned_admins",
    )
    activity_logs = relationship(
        "AdminActivityLog",
        back_populates="admin",
        order_by="AdminActivityLog.id",
    )

    @property
    def login_history(self) -> list:
        if not self.login_history_json:
            return []
        return json.loads(self.login_history_json)

    @login_history.setter
    def login_history(self, entries: list) -> None:
        self.login_history_json = json.dumps(entries)


class AdminActivityLog(Base):
    """Per-admin operational activity entry.

    Append-only and uncapped, unlike ``Admin.login_history``.
    """
    __tablename__ = "admin_activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(String(36), ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(100), nullable=False)
    details = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    timestamp = Column(DateTime, server_default=func.now(), nullable=False)

    admin = relationship("Admin", back_populates="activity_logs")
