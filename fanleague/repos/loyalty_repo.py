"""
Loyalty repository: attended records, loyalty credits and the user projection
"""

import logging
from typing import Optional, List, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_, or_, case, exists
from sqlalchemy.orm import selectinload
from fanleague.models.attendance import Attendance
from fanleague.models.loyalty_credit import LoyaltyCredit
from fanleague.models.user import User
from fanleague.models.enums import AttendanceStatus, RewardType
from fanleague.services.loyalty import REWARD_THRESHOLDS

logger = logging.getLogger(__name__)

_REWARD_COLUMNS = {
    "scarf": "reward_scarf",
    "vipTicket": "reward_vip_ticket",
    "jersey": "reward_jersey",
}


async def get_attended_records(session: AsyncSession, user_id: UUID) -> List[Attendance]:
    """
    Attendance records with status "attended", tournaments loaded.

    Ordered by check-in time so positional access follows chronology.
    """
    result = await session.execute(
        select(Attendance)
        .options(selectinload(Attendance.tournament))
        .where(
            Attendance.user_id == user_id,
            Attendance.attendance_status == AttendanceStatus.ATTENDED
        )
        .order_by(
            func.coalesce(Attendance.checked_in_at, Attendance.updated_at).asc(),
            Attendance.id
        )
    )
    return list(result.scalars().all())


async def get_credits(session: AsyncSession, user_id: UUID) -> List[LoyaltyCredit]:
    result = await session.execute(
        select(LoyaltyCredit)
        .where(LoyaltyCredit.user_id == user_id)
        .order_by(LoyaltyCredit.created_at.asc(), LoyaltyCredit.id)
    )
    return list(result.scalars().all())


async def refresh_loyalty_projection(session: AsyncSession, user_id: UUID) -> None:
    """
    Recompute User.loyalty_points and reward flags from attendance and credits.

    Runs as a single UPDATE with correlated subqueries, so concurrent refreshes
    each write a value derived from committed rows. Does not commit.
    """
    attended = (
        select(func.count(Attendance.id))
        .where(
            Attendance.user_id == user_id,
            Attendance.attendance_status == AttendanceStatus.ATTENDED
        )
        .scalar_subquery()
    )
    credited = (
        select(func.coalesce(func.sum(LoyaltyCredit.points), 0))
        .where(LoyaltyCredit.user_id == user_id)
        .scalar_subquery()
    )
    total = attended + credited
    points = case((total < 0, 0), else_=total)

    values = {"loyalty_points": points}
    for key, threshold in REWARD_THRESHOLDS:
        awarded = exists().where(
            LoyaltyCredit.user_id == user_id,
            LoyaltyCredit.reward == RewardType(key)
        )
        values[_REWARD_COLUMNS[key]] = or_(points >= threshold, awarded)

    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


async def add_credit(
    session: AsyncSession,
    user_id: UUID,
    points: int = 0,
    reward: Optional[RewardType] = None,
    reason: Optional[str] = None,
    admin_id: Optional[UUID] = None
) -> LoyaltyCredit:
    """
    Record a loyalty credit and refresh the user's projection. Does not commit.

    Args:
        session: Database session
        user_id: User UUID
        points: Points to add (negative to deduct)
        reward: Reward granted regardless of points
        reason: Free-text reason shown to admins
        admin_id: Admin who issued the credit

    Returns:
        The pending LoyaltyCredit instance
    """
    credit = LoyaltyCredit(
        user_id=user_id,
        points=points,
        reward=reward,
        reason=reason,
        admin_id=admin_id
    )
    session.add(credit)
    await session.flush()
    await refresh_loyalty_projection(session, user_id)
    logger.info(f"Loyalty credit for user {user_id}: points={points}, reward={reward}")
    return credit


async def leaderboard_rows(session: AsyncSession, limit: int) -> List[Tuple[UUID, str, int]]:
    """
    (user_id, full_name, attended_count) for the top users by attended count.

    Users with no attendance are included with a count of zero.
    """
    attended_count = func.count(Attendance.id)
    result = await session.execute(
        select(User.id, User.full_name, attended_count)
        .outerjoin(
            Attendance,
            and_(
                Attendance.user_id == User.id,
                Attendance.attendance_status == AttendanceStatus.ATTENDED
            )
        )
        .group_by(User.id, User.full_name)
        .order_by(attended_count.desc(), User.full_name.asc(), User.id.asc())
        .limit(limit)
    )
    return [(row[0], row[1], int(row[2])) for row in result.all()]


async def attended_counts(session: AsyncSession) -> dict:
    """Attended count per user id, for users with at least one."""
    result = await session.execute(
        select(Attendance.user_id, func.count(Attendance.id))
        .where(Attendance.attendance_status == AttendanceStatus.ATTENDED)
        .group_by(Attendance.user_id)
    )
    return {user_id: int(count) for user_id, count in result.all()}
