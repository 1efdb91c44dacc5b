"""
Shared request helpers for the API routers
"""

from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.models.user import User
from fanleague.repos.user_repo import get_user_by_id


def parse_uuid(value: Optional[str], name: str = "User ID") -> UUID:
    """Parse an id from a query or body value, 400 when missing or malformed."""
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": f"{name} is required"}
        )
    try:
        return UUID(str(value))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": f"Invalid {name}", "details": str(value)}
        )


async def load_user(session: AsyncSession, user_id: Optional[str]) -> User:
    """Resolve a userId value to a User, 400 when malformed and 404 when unknown."""
    user = await get_user_by_id(session, parse_uuid(user_id))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "User not found"}
        )
    return user
