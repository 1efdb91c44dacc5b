"""
Attendance repository
"""

from typing import Optional, List, Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import selectinload
from fanleague.models.attendance import Attendance
from fanleague.models.user import User
from fanleague.models.enums import AttendanceStatus


async def create_attendance(
    session: AsyncSession,
    user_id: UUID,
    tournament_id: UUID
) -> Attendance:
    """
    Register a user for a tournament.

    Raises:
        sqlalchemy.exc.IntegrityError: the user is already registered
    """
    attendance = Attendance(
        user_id=user_id,
        tournament_id=tournament_id,
        attendance_status=AttendanceStatus.REGISTERED
    )
    session.add(attendance)
    await session.commit()
    await session.refresh(attendance)
    return attendance


async def get_attendance_by_id(session: AsyncSession, attendance_id: UUID) -> Optional[Attendance]:
    """Get attendance with its user and tournament loaded."""
    result = await session.execute(
        select(Attendance)
        .options(selectinload(Attendance.user), selectinload(Attendance.tournament))
        .where(Attendance.id == attendance_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_attendance_for_user(
    session: AsyncSession,
    user_id: UUID,
    tournament_id: UUID
) -> Optional[Attendance]:
    result = await session.execute(
        select(Attendance).where(
            Attendance.user_id == user_id,
            Attendance.tournament_id == tournament_id
        )
    )
    return result.scalar_one_or_none()


async def get_user_attendance(
    session: AsyncSession,
    user_id: UUID,
    statuses: Sequence[AttendanceStatus],
    newest_first: bool = False,
    limit: Optional[int] = None
) -> List[Attendance]:
    """
    Get a user's attendance records in the given statuses, tournaments loaded.

    Args:
        session: Database session
        user_id: User UUID
        statuses: Statuses to include
        newest_first: Order by creation time descending instead of ascending
        limit: Maximum number of records

    Returns:
        List of Attendance instances
    """
    order = Attendance.created_at.desc() if newest_first else Attendance.created_at.asc()
    query = (
        select(Attendance)
        .options(selectinload(Attendance.tournament))
        .where(
            Attendance.user_id == user_id,
            Attendance.attendance_status.in_(list(statuses))
        )
        .order_by(order, Attendance.id)
    )
    if limit:
        query = query.limit(limit)

    result = await session.execute(query)
    return list(result.scalars().all())


async def list_attendance(
    session: AsyncSession,
    status: Optional[AttendanceStatus] = None,
    tournament_id: Optional[UUID] = None,
    q: Optional[str] = None,
    limit: int = 100,
    offset: int = 0
) -> List[Attendance]:
    """
    Admin listing of attendance requests, user and tournament loaded.

    Args:
        session: Database session
        status: Filter by status
        tournament_id: Filter by tournament
        q: Case-insensitive search on user name or email
        limit: Maximum number of records
        offset: Number of records to skip

    Returns:
        List of Attendance instances, oldest registration first
    """
    query = (
        select(Attendance)
        .options(selectinload(Attendance.user), selectinload(Attendance.tournament))
        .order_by(Attendance.registration_date.asc(), Attendance.id)
    )

    if status is not None:
        query = query.where(Attendance.attendance_status == status)
    if tournament_id is not None:
        query = query.where(Attendance.tournament_id == tournament_id)
    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.join(User, User.id == Attendance.user_id).where(
            or_(
                func.lower(User.full_name).like(pattern),
                func.lower(User.email).like(pattern)
            )
        )

    query = query.limit(limit).offset(offset)
    result = await session.execute(query)
    return list(result.scalars().all())


async def transition_status(
    session: AsyncSession,
    attendance_id: UUID,
    expected: AttendanceStatus,
    new_status: AttendanceStatus,
    **values
) -> bool:
    """
    Move an attendance record from one status to another.

    The update only applies while the row is still in the expected status, so
    a concurrent transition that already moved it is detected rather than
    overwritten. Does not commit.

    Returns:
        True if the row was updated
    """
    result = await session.execute(
        update(Attendance)
        .where(Attendance.id == attendance_id, Attendance.attendance_status == expected)
        .values(attendance_status=new_status, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def count_by_status(session: AsyncSession, statuses: Sequence[AttendanceStatus]) -> int:
    result = await session.execute(
        select(func.count(Attendance.id)).where(Attendance.attendance_status.in_(list(statuses)))
    )
    return int(result.scalar_one())


async def recent_attendance(session: AsyncSession, limit: int = 10) -> List[Attendance]:
    """Most recently updated attendance records, user and tournament loaded."""
    result = await session.execute(
        select(Attendance)
        .options(selectinload(Attendance.user), selectinload(Attendance.tournament))
        .order_by(Attendance.updated_at.desc(), Attendance.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def registration_counts(session: AsyncSession) -> dict:
    """Open registration count (registered or approved) per user id."""
    result = await session.execute(
        select(Attendance.user_id, func.count(Attendance.id))
        .where(Attendance.attendance_status.in_([AttendanceStatus.REGISTERED, AttendanceStatus.APPROVED]))
        .group_by(Attendance.user_id)
    )
    return {user_id: int(count) for user_id, count in result.all()}
