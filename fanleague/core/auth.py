"""
JWT authentication for the admin surface
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.core.config import settings
from fanleague.db.session import get_db
from fanleague.models.admin import Admin
from fanleague.repos.admin_repo import get_admin_by_id

logger = logging.getLogger(__name__)

ADMIN_TOKEN_TYPE = "admin"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT token scheme
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_admin_token(admin: Admin, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT for an admin session."""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode = {
        "sub": str(admin.id),
        "role": admin.role.value,
        "exp": expire,
        "type": ADMIN_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, token_type: str = ADMIN_TOKEN_TYPE) -> Dict[str, Any]:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Could not validate credentials"}
        )
    if payload.get("type") != token_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type"}
        )
    return payload


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_db)
) -> Admin:
    """Get current authenticated admin."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not authenticated"}
        )

    payload = verify_token(credentials.credentials, ADMIN_TOKEN_TYPE)

    admin_id = payload.get("sub")
    try:
        admin_uuid = UUID(admin_id)
    except (TypeError, ValueError):
        logger.warning("Admin token with malformed 'sub' claim")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Could not validate admin credentials"}
        )

    admin = await get_admin_by_id(session, admin_uuid)
    if admin is None:
        logger.warning(f"Admin not found for ID: {admin_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Admin not found"}
        )

    return admin


def require_permission(permission: str):
    """
    Dependency factory: the current admin must hold the given permission.

    Usage:
        admin: Admin = Depends(require_permission("manage_users"))
    """
    async def dependency(admin: Admin = Depends(get_current_admin)) -> Admin:
        if not admin.has_permission(permission):
            logger.warning(f"Admin {admin.id} denied: missing permission {permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": "Insufficient permissions", "details": permission}
            )
        return admin

    return dependency
