"""Audit log model — append-only."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from admin_api.db.base import Base


class AuditLog(Base):
    """Immutable audit trail of privileged admin actions.

    This table is APPEND-ONLY: no UPDATE or DELETE operations should ever
    be performed on it (enforced at application level). Nothing in the
    authorization path reads it.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(String(36), nullable=True, index=True)
    admin_email = Column(String(255), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "role.created"
    target_id = Column(String(100), nullable=True, index=True)
    target_email = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    metadata_json = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
