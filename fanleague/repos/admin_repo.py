"""
Admin repository for admin user management
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from fanleague.db.base import utcnow
from fanleague.models.admin import Admin
from fanleague.models.user import User
from fanleague.models.enums import AdminRole


async def create_admin(
    session: AsyncSession,
    user_id: UUID,
    password_hash: str,
    role: AdminRole = AdminRole.ADMIN,
    **permissions
) -> Admin:
    """
    Grant admin capabilities to a user.

    Args:
        session: Database session
        user_id: User UUID
        password_hash: bcrypt hash of the admin password
        role: Admin role
        **permissions: Overrides for the permission flags

    Returns:
        Created Admin instance
    """
    admin = Admin(
        user_id=user_id,
        password_hash=password_hash,
        role=role,
        **permissions
    )
    session.add(admin)
    await session.commit()
    await session.refresh(admin)
    return admin


async def get_admin_by_id(session: AsyncSession, admin_id: UUID) -> Optional[Admin]:
    result = await session.execute(
        select(Admin).where(Admin.id == admin_id)
    )
    return result.scalar_one_or_none()


async def get_admin_by_user_id(session: AsyncSession, user_id: UUID) -> Optional[Admin]:
    result = await session.execute(
        select(Admin).where(Admin.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_admin_by_email(session: AsyncSession, email: str) -> Optional[Admin]:
    """
    Get admin by the email of the linked user.

    Args:
        session: Database session
        email: User email address

    Returns:
        Admin instance or None if the user is not an admin
    """
    result = await session.execute(
        select(Admin)
        .join(User, User.id == Admin.user_id)
        .where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def record_login(session: AsyncSession, admin_id: UUID) -> None:
    await session.execute(
        update(Admin).where(Admin.id == admin_id).values(last_login=utcnow())
    )
    await session.commit()
