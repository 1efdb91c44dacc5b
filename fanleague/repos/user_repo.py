"""
User repository with async CRUD operations
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_, func
from fanleague.models.user import User
from fanleague.models.enums import Language
from fanleague.core.phone import normalize_e164, normalize_phone_number, strip_plus


async def create_user(
    session: AsyncSession,
    full_name: str,
    email: str,
    country_code: str,
    phone_number: str,
    location: str,
    favorite_games: Optional[List[str]] = None,
    language: Language = Language.EN
) -> User:
    """
    Create a new, unverified user.

    Args:
        session: Database session
        full_name: Display name
        email: Email address (must be unique)
        country_code: Normalized country code ("+<digits>")
        phone_number: Normalized national number (must be unique)
        location: City or region
        favorite_games: Optional list of games
        language: Preferred language

    Returns:
        Created User instance
    """
    user = User(
        full_name=full_name,
        email=email,
        country_code=country_code,
        phone_number=phone_number,
        location=location,
        favorite_games=list(favorite_games or []),
        language=language,
        is_verified=False
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def get_user_by_id(session: AsyncSession, user_id: UUID) -> Optional[User]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User UUID

    Returns:
        User instance or None if not found
    """
    result = await session.execute(
        select(User).where(User.id == user_id)
    )
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Get user by email address."""
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def find_existing_user(session: AsyncSession, email: str, phone_number: str) -> Optional[User]:
    """
    Find a user that already owns this email or phone number.

    The phone number is compared in its stored form, without a leading "+".
    """
    result = await session.execute(
        select(User).where(
            or_(
                func.lower(User.email) == email.strip().lower(),
                User.phone_number == normalize_phone_number(phone_number)
            )
        ).limit(1)
    )
    return result.scalar_one_or_none()


class AmbiguousPhoneNumber(Exception):
    """More than one account resolves to the same international number"""


async def get_user_by_e164(session: AsyncSession, phone_number: str) -> Optional[User]:
    """
    Get user by full international number (country code + national number).

    Raises:
        AmbiguousPhoneNumber: two accounts concatenate to the same number,
            e.g. "+1" + "15551112222" and "+11" + "5551112222"
    """
    e164 = normalize_e164(phone_number)
    result = await session.execute(
        select(User)
        .where((User.country_code + User.phone_number) == e164)
        .limit(2)
    )
    users = list(result.scalars().all())
    if len(users) > 1:
        raise AmbiguousPhoneNumber(f"{e164} matches more than one account")
    return users[0] if users else None


async def mark_verification_pending(session: AsyncSession, user_id: UUID, expires_at: datetime) -> None:
    """Record that a verification code has been requested for the user."""
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(verification_expires=expires_at)
    )
    await session.commit()


async def mark_user_verified(session: AsyncSession, user_id: UUID) -> bool:
    """
    Set is_verified on an unverified user and clear the transient fields.

    Returns:
        True if the flag changed, False if the user was already verified
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.is_verified.is_(False))
        .values(is_verified=True, verification_code=None, verification_expires=None)
    )
    await session.commit()
    return result.rowcount == 1


async def get_users(
    session: AsyncSession,
    q: Optional[str] = None,
    location: Optional[str] = None
) -> List[User]:
    """
    Get users, optionally filtered by a search term and location.

    Args:
        session: Database session
        q: Case-insensitive match on name or email, substring match on phone
        location: Exact location match

    Returns:
        List of User instances, newest first
    """
    query = select(User).order_by(User.created_at.desc())

    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(User.full_name).like(pattern),
                func.lower(User.email).like(pattern),
                User.phone_number.like(f"%{strip_plus(q)}%")
            )
        )

    if location:
        query = query.where(User.location == location)

    result = await session.execute(query)
    return list(result.scalars().all())


async def count_users(session: AsyncSession, verified_only: bool = False) -> int:
    query = select(func.count(User.id))
    if verified_only:
        query = query.where(User.is_verified.is_(True))
    result = await session.execute(query)
    return int(result.scalar_one())
