"""Refresh token model."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from admin_api.db.base import Base


class RefreshToken(Base):
    """SHA-256 hash of an issued refresh token; revoked on logout."""
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(String(36), ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
