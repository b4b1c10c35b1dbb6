"""Permissions API router — read-only catalog views."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin_api.core.security import RequirePermission
from admin_api.db.session import get_db
from admin_api.schemas.schemas import ApiResponse, PermissionOut
from admin_api.services.authorization_service import Principal
from admin_api.services.permission_service import permission_service

router = APIRouter(prefix="/permissions", tags=["permissions"])


def _dump(perms) -> List[PermissionOut]:
    return [PermissionOut.model_validate(p) for p in perms]


@router.get("/", response_model=ApiResponse)
async def list_permissions_grouped(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Active permissions grouped by category, plus every active id."""
    result = permission_service.list_by_group(db)
    return ApiResponse(
        message="Permissions retrieved successfully",
        data={
            "grouped": {group: _dump(perms) for group, perms in result["grouped"].items()},
            "all_ids": result["all_ids"],
        },
    )


@router.get("/all", response_model=ApiResponse)
async def list_all_permissions(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Flat list of active permissions."""
    return ApiResponse(
        message="All permissions retrieved successfully",
        data=_dump(permission_service.list_all(db)),
    )


@router.get("/group/{group}", response_model=ApiResponse)
async def list_permissions_in_group(
    group: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission("roles.view")),
):
    """Active permissions of one group; unknown groups yield an empty list."""
    return ApiResponse(
        message=f"Permissions for group {group} retrieved successfully",
        data=_dump(permission_service.list_by_group_name(db, group)),
    )
