"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from admin_api.models.admin import AdminRole
from admin_api.models.permission import PriorityEnum


# ---- Common ----
class MessageResponse(BaseModel):
    message: str

class ApiResponse(BaseModel):
    status: str = "success"
    message: str
    data: Optional[Any] = None


# ---- Auth ----
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=1, max_length=72)

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    admin: Optional[Dict[str, Any]] = None

class RefreshRequest(BaseModel):
    refresh_token: str


# ---- Permission ----
class PermissionBrief(BaseModel):
    id: str
    permission_name: str
    permission_group: str
    description: str

    class Config:
        from_attributes = True

class PermissionOut(PermissionBrief):
    priority: PriorityEnum
    is_active: bool


# ---- Admin ----
class AdminBrief(BaseModel):
    id: str
    full_name: str
    email: str

    class Config:
        from_attributes = True

class RoleBrief(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True

class AdminOut(BaseModel):
    id: str
    email: str
    full_name: str
    role: AdminRole
    is_active: bool = True
    roles: List[RoleBrief] = []
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AdminCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    full_name: str = Field(..., min_length=2)
    role: AdminRole = AdminRole.admin
    role_ids: List[str] = []

class AdminRoleUpdate(BaseModel):
    role: AdminRole

class ChangePasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=8, max_length=72)

class ActivityLogOut(BaseModel):
    id: int
    action: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Role ----
def _clean_role_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Role name must not be blank")
    return value


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=255)
    permissions: List[str] = []
    assigned_admins: List[str] = []
    priority: PriorityEnum = PriorityEnum.medium
    is_system_role: bool = False
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, value):
        return _clean_role_name(value)

class RoleUpdate(BaseModel):
    """Partial update; a field left as None is not touched."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    permissions: Optional[List[str]] = None
    priority: Optional[PriorityEnum] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value):
        return _clean_role_name(value)

class AssignPermissionsRequest(BaseModel):
    permission_ids: List[str]

class RoleOut(BaseModel):
    id: str
    name: str
    description: str
    priority: PriorityEnum
    is_active: bool
    is_system_role: bool
    permissions: List[PermissionBrief] = []
    assigned_admins: List[AdminBrief] = []
    creator: Optional[AdminBrief] = None
    updater: Optional[AdminBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    admin_id: Optional[str] = None
    admin_email: Optional[str] = None
    action: str
    target_id: Optional[str] = None
    target_email: Optional[str] = None
    details: Optional[str] = None
    metadata_json: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
