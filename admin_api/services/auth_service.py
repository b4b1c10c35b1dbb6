"""Auth service — JWT login, refresh and logout for admins."""

import hashlib
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from admin_api.core.exceptions import AuthenticationError, ServiceUnavailableError
from admin_api.core.security import (
    create_access_token, create_refresh_token, decode_token,
)
from admin_api.models.admin import Admin
from admin_api.models.refresh_token import RefreshToken
from admin_api.services.admin_service import admin_service


def _token_claims(admin: Admin) -> Dict[str, Any]:
    return {
        "sub": admin.id,
        "email": admin.email,
        "role": admin.role.value,
    }


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    """Issues and refreshes tokens; the authorization engine never trusts them
    for anything beyond the caller's identity."""

    @staticmethod
    def authenticate(db: Session, email: str, password: str, ip_address: Optional[str] = None) -> Dict[str, Any]:
        """Authenticate an admin and return JWT tokens.

        Raises:
            AuthenticationError: If credentials are invalid or the admin is
                deactivated (both report the same message).
        """
        admin = admin_service.find_by_email(db, email)
        if not admin or not admin_service.validate_password(admin, password):
            raise AuthenticationError("Invalid credentials")

        token_data = _token_claims(admin)
        access_token = create_access_token(token_data)
        refresh_token_str = create_refresh_token(token_data)

        rt = RefreshToken(
            admin_id=admin.id,
            token_hash=_hash_token(refresh_token_str),
            expires_at=datetime.fromtimestamp(decode_token(refresh_token_str)["exp"], tz=timezone.utc),
        )
        db.add(rt)

        # record_login commits the refresh token together with the login stamp
        admin_service.record_login(db, admin.id, ip_address)
        admin_service.record_activity(db, admin.id, "LOGIN", "Admin logged in successfully", ip_address)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token_str,
            "token_type": "bearer",
            "admin": {
                "id": admin.id,
                "email": admin.email,
                "full_name": admin.full_name,
                "role": admin.role.value,
            },
        }

    @staticmethod
    def refresh_access_token(db: Session, refresh_token: str) -> Dict[str, Any]:
        """Issue a new access token from a valid, unrevoked refresh token."""
        payload = decode_token(refresh_token)
        if payload.get("type") != "refresh":
            raise AuthenticationError("Invalid refresh token")

        stored = db.query(RefreshToken).filter(
            RefreshToken.token_hash == _hash_token(refresh_token),
            RefreshToken.revoked_at.is_(None),
        ).first()
        if not stored:
            raise AuthenticationError("Invalid refresh token")

        admin = admin_service.find_by_id(db, payload.get("sub"))
        if not admin or not admin.is_active:
            raise AuthenticationError("Invalid refresh token")

        return {
            "access_token": create_access_token(_token_claims(admin)),
            "token_type": "bearer",
        }

    @staticmethod
    def logout(db: Session, admin_id: str) -> int:
        """Revoke all refresh tokens of an admin. Returns how many were revoked."""
        revoked = db.query(RefreshToken).filter(
            RefreshToken.admin_id == admin_id,
            RefreshToken.revoked_at.is_(None),
        ).update({"revoked_at": datetime.now(timezone.utc)})
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise ServiceUnavailableError("Failed to revoke tokens") from e
        return revoked


auth_service = AuthService()
