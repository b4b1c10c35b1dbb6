"""Audit service — append-only trail of privileged admin actions.

Recording is best-effort: a failed audit write is logged and rolled back but
never raised, so it cannot undo or fail the action being audited.
"""

import json
import logging
from datetime import datetime
from typing import Optional, Any, Dict

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi import Request

from admin_api.core.pagination import build_pagination, offset_for
from admin_api.models.audit_log import AuditLog

logger = logging.getLogger("admin_api")


class AuditService:
    """Records and queries audit log entries."""

    @staticmethod
    def record(
        db: Session,
        admin_id: Optional[str],
        action: str,
        target_id: Optional[str] = None,
        details: str = "",
        ip_address: Optional[str] = None,
        admin_email: Optional[str] = None,
        target_email: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Write a single audit log record.

        Args:
            action: e.g. "role.created", "admin.deactivated", "auth.login"

        Returns the entry, or None if it could not be stored.
        """
        entry = AuditLog(
            admin_id=admin_id,
            admin_email=admin_email,
            action=action,
            target_id=str(target_id) if target_id else None,
            target_email=target_email,
            details=details,
            metadata_json=json.dumps(metadata, default=str) if metadata else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to write audit log entry for action %s", action)
            return None
        return entry

    @staticmethod
    def record_from_request(
        db: Session,
        request: Request,
        admin_id: Optional[str],
        action: str,
        target_id: Optional[str] = None,
        details: str = "",
        admin_email: Optional[str] = None,
        target_email: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Write audit log extracting IP and user-agent from the request."""
        ip = request.client.host if request.client else None
        ua = request.headers.get("user-agent", "")[:500]
        return AuditService.record(
            db,
            admin_id=admin_id,
            action=action,
            target_id=target_id,
            details=details,
            ip_address=ip,
            admin_email=admin_email,
            target_email=target_email,
            user_agent=ua,
            metadata=metadata,
        )

    @staticmethod
    def query_logs(
        db: Session,
        admin_id: Optional[str] = None,
        action: Optional[str] = None,
        target_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Dict[str, Any]:
        """Query audit logs with filters and pagination."""
        query = db.query(AuditLog)

        if admin_id:
            query = query.filter(AuditLog.admin_id == admin_id)
        if action:
            query = query.filter(AuditLog.action == action)
        if target_id:
            query = query.filter(AuditLog.target_id == target_id)
        if start:
            query = query.filter(AuditLog.created_at >= start)
        if end:
            query = query.filter(AuditLog.created_at <= end)

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(offset_for(page, page_size))
            .limit(page_size)
            .all()
        )

        return {
            "logs": logs,
            "pagination": build_pagination(page, page_size, total),
        }

    @staticmethod
    def stats(db: Session) -> Dict[str, Any]:
        """Totals grouped by action and by admin."""
        total = db.query(func.count(AuditLog.id)).scalar()

        by_action = (
            db.query(AuditLog.action, func.count(AuditLog.id).label("count"))
            .group_by(AuditLog.action)
            .order_by(func.count(AuditLog.id).desc())
            .all()
        )
        by_admin = (
            db.query(
                AuditLog.admin_email,
                func.count(AuditLog.id).label("count"),
                func.max(AuditLog.created_at).label("last_activity"),
            )
            .group_by(AuditLog.admin_email)
            .order_by(func.count(AuditLog.id).desc())
            .all()
        )

        return {
            "total_logs": total,
            "action_stats": [{"action": a, "count": c} for a, c in by_action],
            "admin_stats": [
                {"admin_email": email, "count": c, "last_activity": last}
                for email, c, last in by_admin
            ],
        }


audit_service = AuditService()
