"""
Tournament repository
"""

from datetime import datetime
from typing import Optional, List, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from fanleague.models.tournament import Tournament
from fanleague.models.attendance import Attendance
from fanleague.models.enums import AttendanceStatus

# Statuses that hold a seat at the event
SEATED_STATUSES = (
    AttendanceStatus.REGISTERED,
    AttendanceStatus.APPROVED,
    AttendanceStatus.ATTENDED,
    AttendanceStatus.NO_SHOW,
)


async def create_tournament(
    session: AsyncSession,
    title: str,
    game: str,
    date: datetime,
    location: str,
    capacity: int,
    loyalty_points_value: int = 1,
    is_priority_event: bool = False,
    description: Optional[str] = None,
    venue_information: Optional[str] = None,
    participating_teams: Optional[List[str]] = None
) -> Tournament:
    """
    Create a tournament.

    Args:
        session: Database session
        title: Event title
        game: Game played at the event
        date: Event date (naive UTC)
        location: Venue city
        capacity: Maximum number of registrations
        loyalty_points_value: Points credited on attendance
        is_priority_event: Highlighted event flag
        description: Optional description
        venue_information: Optional venue details
        participating_teams: Optional list of team names

    Returns:
        Created Tournament instance
    """
    tournament = Tournament(
        title=title,
        game=game,
        date=date,
        location=location,
        capacity=capacity,
        loyalty_points_value=loyalty_points_value,
        is_priority_event=is_priority_event,
        description=description,
        venue_information=venue_information,
        participating_teams=list(participating_teams or [])
    )
    session.add(tournament)
    await session.commit()
    await session.refresh(tournament)
    return tournament


async def get_tournament_by_id(session: AsyncSession, tournament_id: UUID) -> Optional[Tournament]:
    result = await session.execute(
        select(Tournament).where(Tournament.id == tournament_id)
    )
    return result.scalar_one_or_none()


async def get_tournaments(
    session: AsyncSession,
    game: Optional[str] = None,
    after: Optional[datetime] = None,
    limit: Optional[int] = None
) -> List[Tournament]:
    """
    Get tournaments ordered by date.

    Args:
        session: Database session
        game: Filter by game
        after: Only tournaments strictly after this moment
        limit: Maximum number of tournaments to return

    Returns:
        List of Tournament instances, soonest first
    """
    query = select(Tournament).order_by(Tournament.date.asc())

    if game:
        query = query.where(Tournament.game == game)
    if after is not None:
        query = query.where(Tournament.date > after)
    if limit:
        query = query.limit(limit)

    result = await session.execute(query)
    return list(result.scalars().all())


async def count_tournaments(session: AsyncSession, after: Optional[datetime] = None) -> int:
    query = select(func.count(Tournament.id))
    if after is not None:
        query = query.where(Tournament.date > after)
    result = await session.execute(query)
    return int(result.scalar_one())


async def count_seated(session: AsyncSession, tournament_id: UUID) -> int:
    """Number of registrations holding a seat (everything except rejected)."""
    result = await session.execute(
        select(func.count(Attendance.id)).where(
            Attendance.tournament_id == tournament_id,
            Attendance.attendance_status.in_(SEATED_STATUSES)
        )
    )
    return int(result.scalar_one())


async def registrations_by_tournament(session: AsyncSession) -> List[Tuple[Tournament, int]]:
    """Each tournament with its seated registration count, soonest first."""
    registration_count = func.count(Attendance.id)
    result = await session.execute(
        select(Tournament, registration_count)
        .outerjoin(
            Attendance,
            and_(
                Attendance.tournament_id == Tournament.id,
                Attendance.attendance_status.in_(SEATED_STATUSES)
            )
        )
        .group_by(Tournament.id)
        .order_by(Tournament.date.asc())
    )
    return [(tournament, int(count)) for tournament, count in result.all()]
