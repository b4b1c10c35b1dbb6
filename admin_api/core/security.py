"""JWT authentication and RBAC authorization helpers."""

import secrets

import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from admin_api.core.config import settings
from admin_api.core.exceptions import (
    AuthorizationError, ServiceUnavailableError, unauthorized, unavailable,
)
from admin_api.db.session import get_db
from admin_api.services.authorization_service import (
    Principal, Requirement, authorization_service,
)

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. Never raises on a bad hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRY_DAYS)
    # jti keeps two refresh tokens issued in the same second distinct
    to_encode.update({"exp": expire, "type": "refresh", "jti": secrets.token_hex(8)})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Principal:
    """Extract the caller identity from the JWT Bearer token."""
    if credentials is None:
        raise unauthorized()
    payload = decode_token(credentials.credentials)
    if payload.get("type") != "access":
        raise unauthorized("Invalid token type")
    admin_id = payload.get("sub")
    if admin_id is None:
        raise unauthorized("Invalid token payload")
    return Principal(
        admin_id=str(admin_id),
        email=payload.get("email"),
        token_role=payload.get("role"),
    )


class Authorize:
    """Dependency that runs the authorization engine for one requirement.

    With no requirement it only checks that the caller is an existing,
    active admin.
    """

    def __init__(self, permissions=(), roles=()):
        self.requirement = Requirement.of(permissions=permissions, roles=roles)

    def __call__(
        self,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> Principal:
        try:
            allowed = authorization_service.is_allowed(db, principal, self.requirement)
        except ServiceUnavailableError:
            raise unavailable()
        if not allowed:
            raise AuthorizationError()
        return principal


class RequirePermission(Authorize):
    """Dependency that requires every listed permission name."""

    def __init__(self, *permissions: str):
        super().__init__(permissions=permissions)


class RequireRole(Authorize):
    """Dependency that requires one of the listed legacy role tags."""

    def __init__(self, *roles):
        super().__init__(roles=roles)


# Convenience dependencies
require_authenticated = Authorize()
require_super_admin = RequireRole("super_admin")
