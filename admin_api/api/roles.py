"""Roles API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from admin_api.core.security import RequirePermission
from admin_api.db.session import get_db
from admin_api.models.permission import PriorityEnum
from admin_api.schemas.schemas import (
    ApiResponse, AssignPermissionsRequest, AdminBrief, PermissionOut,
    RoleCreate, RoleOut, RoleUpdate,
)
from admin_api.services.audit_service import audit_service
from admin_api.services.authorization_service import Principal
from admin_api.services.permission_service import permission_service
from admin_api.services.role_service import role_service

router = APIRouter(prefix="/roles", tags=["roles"])


def _audit(db: Session, request: Request, principal: Principal, action: str, target_id: str, details: str):
    audit_service.record_from_request(
        db, request,
        admin_id=principal.admin_id,
        admin_email=principal.email,
        action=action,
        target_id=target_id,
        details=details,
    )


@router.post("/", response_model=ApiResponse, status_code=201)
async def create_role(
    body: RoleCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.create")),
):
    """Create a new role."""
    role = role_service.create_role(db, body, created_by=principal.admin_id)
    data = RoleOut.model_validate(role)
    _audit(db, request, principal, "role.created", role.id, f"Created role '{data.name}'")
    return ApiResponse(message="Role created successfully", data=data)


@router.get("/", response_model=ApiResponse)
async def list_roles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    is_system_role: Optional[bool] = Query(None),
    priority: Optional[PriorityEnum] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """List roles with pagination and filters."""
    result = role_service.list_roles(
        db, page, limit,
        search=search,
        is_active=is_active,
        is_system_role=is_system_role,
        priority=priority,
    )
    return ApiResponse(
        message="Roles retrieved successfully",
        data={
            "roles": [RoleOut.model_validate(r) for r in result["roles"]],
            "pagination": result["pagination"],
        },
    )


@router.get("/permissions", response_model=ApiResponse)
async def get_available_permissions(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Active permissions grouped by category."""
    grouped = permission_service.list_by_group(db)["grouped"]
    return ApiResponse(
        message="Available permissions retrieved successfully",
        data={
            group: [PermissionOut.model_validate(p) for p in perms]
            for group, perms in grouped.items()
        },
    )


@router.get("/permissions/ids", response_model=ApiResponse)
async def get_permission_ids(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Permission ids for building role payloads."""
    return ApiResponse(
        message="Permission IDs retrieved successfully",
        data=role_service.list_permission_choices(db),
    )


@router.get("/admins/ids", response_model=ApiResponse)
async def get_admin_ids(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Active admin ids for role assignment."""
    admins = role_service.list_admin_choices(db)
    return ApiResponse(
        message="Admin IDs retrieved successfully",
        data=[
            {**AdminBrief.model_validate(a).model_dump(), "role": a.role.value}
            for a in admins
        ],
    )


@router.get("/{role_id}", response_model=ApiResponse)
async def get_role(
    role_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Get a role by id."""
    role = role_service.get_role(db, role_id)
    return ApiResponse(message="Role retrieved successfully", data=RoleOut.model_validate(role))


@router.put("/{role_id}", response_model=ApiResponse)
async def update_role(
    role_id: str,
    body: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.edit")),
):
    """Update a role."""
    role = role_service.update_role(db, role_id, body, updated_by=principal.admin_id)
    data = RoleOut.model_validate(role)
    _audit(db, request, principal, "role.updated", role.id, f"Updated role '{data.name}'")
    return ApiResponse(message="Role updated successfully", data=data)


@router.delete("/{role_id}", response_model=ApiResponse)
async def delete_role(
    role_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.delete")),
):
    """Delete a role."""
    role_service.delete_role(db, role_id, deleted_by=principal.admin_id)
    _audit(db, request, principal, "role.deleted", role_id, "Deleted role")
    return ApiResponse(message="Role deleted successfully")


@router.post("/{role_id}/assign/{admin_id}", response_model=ApiResponse)
async def assign_role(
    role_id: str,
    admin_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.assign")),
):
    """Assign a role to an admin."""
    role = role_service.assign_role_to_admin(db, role_id, admin_id, assigned_by=principal.admin_id)
    _audit(db, request, principal, "role.assigned", admin_id, f"Assigned role {role.id}")
    return ApiResponse(message="Role assigned to admin successfully")


@router.delete("/{role_id}/remove/{admin_id}", response_model=ApiResponse)
async def remove_role(
    role_id: str,
    admin_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.assign")),
):
    """Remove a role from an admin."""
    role = role_service.remove_role_from_admin(db, role_id, admin_id, removed_by=principal.admin_id)
    _audit(db, request, principal, "role.removed", admin_id, f"Removed role {role.id}")
    return ApiResponse(message="Role removed from admin successfully")


@router.post("/{role_id}/permissions", response_model=ApiResponse)
async def assign_permissions(
    role_id: str,
    body: AssignPermissionsRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.edit")),
):
    """Replace the permissions of a role."""
    role = role_service.assign_permissions_to_role(
        db, role_id, body.permission_ids, updated_by=principal.admin_id,
    )
    data = RoleOut.model_validate(role)
    _audit(
        db, request, principal, "role.permissions_assigned", role.id,
        f"Role now has {len(data.permissions)} permissions",
    )
    return ApiResponse(message="Permissions assigned to role successfully", data=data)
