"""Admins API router — account management and profile."""

from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from admin_api.core.security import (
    RequirePermission, require_authenticated, require_super_admin,
)
from admin_api.db.session import get_db
from admin_api.schemas.schemas import (
    AdminCreate, AdminOut, AdminRoleUpdate, ActivityLogOut,
    ChangePasswordRequest, MessageResponse,
)
from admin_api.services.admin_service import admin_service
from admin_api.services.audit_service import audit_service
from admin_api.services.authorization_service import Principal

router = APIRouter(prefix="/admins", tags=["admins"])


@router.get("/list", response_model=List[AdminOut])
async def list_admins(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """List active admins (super admin only)."""
    return admin_service.list_admins(db)


@router.post("/create", response_model=AdminOut, status_code=201)
async def create_admin(
    body: AdminCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """Create a new admin (super admin only)."""
    admin = admin_service.create_admin(
        db,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        role_ids=body.role_ids,
        created_by=principal.admin_id,
    )
    audit_service.record_from_request(
        db, request,
        admin_id=principal.admin_id,
        admin_email=principal.email,
        action="admin.created",
        target_id=admin.id,
        target_email=admin.email,
        details=f"Created admin with role {admin.role.value}",
    )
    return admin


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authenticated),
):
    """Change the caller's own password."""
    admin_service.change_password(db, principal.admin_id, body.new_password)
    audit_service.record_from_request(
        db, request,
        admin_id=principal.admin_id,
        admin_email=principal.email,
        action="admin.password_changed",
        target_id=principal.admin_id,
        details="Password changed",
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/profile", response_model=AdminOut)
async def get_profile(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authenticated),
):
    """Get the caller's profile."""
    return admin_service.get_admin(db, principal.admin_id)


@router.put("/{admin_id}/role", response_model=AdminOut)
async def update_admin_role(
    admin_id: str,
    body: AdminRoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """Change an admin's legacy role (super admin only)."""
    admin = admin_service.set_role(db, admin_id, body.role, updated_by=principal.admin_id)
    audit_service.record_from_request(
        db, request,
        admin_id=principal.admin_id,
        admin_email=principal.email,
        action="admin.role_changed",
        target_id=admin.id,
        target_email=admin.email,
        details=f"Legacy role set to {body.role.value}",
    )
    return admin


@router.put("/{admin_id}/deactivate", response_model=MessageResponse)
async def deactivate_admin(
    admin_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """Deactivate an admin (super admin only)."""
    admin_service.deactivate(db, admin_id, updated_by=principal.admin_id)
    audit_service.record_from_request(
        db, request,
        admin_id=principal.admin_id,
        admin_email=principal.email,
        action="admin.deactivated",
        target_id=admin_id,
        details="Admin deactivated",
    )
    return MessageResponse(message="Admin deactivated successfully")


@router.get("/{admin_id}/activity", response_model=List[ActivityLogOut])
async def get_admin_activity(
    admin_id: str,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("admins.view")),
):
    """Recent activity entries of one admin."""
    return admin_service.list_activity(db, admin_id, limit)
