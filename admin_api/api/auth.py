"""Auth API router — login, refresh, logout, me."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from admin_api.core.config import settings
from admin_api.core.exceptions import AuthenticationError
from admin_api.core.rate_limiter import limiter
from admin_api.core.security import require_authenticated
from admin_api.db.session import get_db
from admin_api.schemas.schemas import (
    LoginRequest, RefreshRequest, TokenResponse, AdminOut, MessageResponse,
)
from admin_api.services.admin_service import admin_service
from admin_api.services.audit_service import audit_service
from admin_api.services.auth_service import auth_service
from admin_api.services.authorization_service import Principal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return JWT tokens."""
    ip = request.client.host if request.client else None
    try:
        result = auth_service.authenticate(db, body.email, body.password, ip)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    audit_service.record_from_request(
        db, request,
        admin_id=result["admin"]["id"],
        admin_email=result["admin"]["email"],
        action="auth.login",
        target_id=result["admin"]["id"],
        details="Admin logged in successfully",
    )
    return result


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Refresh access token."""
    try:
        return auth_service.refresh_access_token(db, body.refresh_token)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authenticated),
):
    """Revoke all refresh tokens."""
    auth_service.logout(db, principal.admin_id)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=AdminOut)
async def get_me(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_authenticated),
):
    """Get current admin profile."""
    return admin_service.get_admin(db, principal.admin_id)
