"""Audit API router."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from admin_api.core.security import RequirePermission
from admin_api.db.session import get_db
from admin_api.schemas.schemas import ApiResponse, AuditLogOut
from admin_api.services.audit_service import audit_service
from admin_api.services.authorization_service import Principal

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/", response_model=ApiResponse)
async def query_audit_logs(
    admin_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    target_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("system.logs")),
):
    """Query the audit trail with filters."""
    result = audit_service.query_logs(
        db,
        admin_id=admin_id,
        action=action,
        target_id=target_id,
        start=start,
        end=end,
        page=page,
        page_size=limit,
    )
    return ApiResponse(
        message="Audit logs retrieved successfully",
        data={
            "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
            "pagination": result["pagination"],
        },
    )


@router.get("/stats", response_model=ApiResponse)
async def audit_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("system.logs")),
):
    """Aggregate counts by action and by admin."""
    return ApiResponse(message="Audit stats retrieved successfully", data=audit_service.stats(db))
