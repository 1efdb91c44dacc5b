"""
Attendance workflow: tournament registration and admin status transitions
"""

import logging
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.db.base import utcnow
from fanleague.models.admin import Admin
from fanleague.models.attendance import Attendance
from fanleague.models.enums import AttendanceStatus
from fanleague.models.tournament import Tournament
from fanleague.models.user import User
from fanleague.repos.attendance_repo import (
    create_attendance,
    get_attendance_by_id,
    get_attendance_for_user,
    transition_status,
)
from fanleague.repos.audit_log_repo import add_audit_log
from fanleague.repos.loyalty_repo import refresh_loyalty_projection
from fanleague.repos.tournament_repo import count_seated

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[AttendanceStatus, FrozenSet[AttendanceStatus]] = {
    AttendanceStatus.REGISTERED: frozenset({AttendanceStatus.APPROVED, AttendanceStatus.REJECTED}),
    AttendanceStatus.APPROVED: frozenset({
        AttendanceStatus.ATTENDED,
        AttendanceStatus.REJECTED,
        AttendanceStatus.NO_SHOW,
    }),
    AttendanceStatus.REJECTED: frozenset({AttendanceStatus.APPROVED}),
    AttendanceStatus.ATTENDED: frozenset(),
    AttendanceStatus.NO_SHOW: frozenset(),
}


class AttendanceError(Exception):
    """Base class for attendance workflow failures"""


class AttendanceNotFound(AttendanceError):
    pass


class AlreadyRegistered(AttendanceError):
    pass


class TournamentFull(AttendanceError):
    pass


class InvalidTransition(AttendanceError):
    def __init__(self, current: AttendanceStatus, requested: AttendanceStatus):
        super().__init__(
            f"Cannot change attendance from '{current.value}' to '{requested.value}'"
        )
        self.current = current
        self.requested = requested


def can_transition(current: AttendanceStatus, requested: AttendanceStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


async def register_for_tournament(
    session: AsyncSession,
    user: User,
    tournament: Tournament
) -> Attendance:
    """
    Create the user's attendance record for a tournament.

    Raises:
        AlreadyRegistered: the user already has a record for this tournament
        TournamentFull: every seat is taken
    """
    if await get_attendance_for_user(session, user.id, tournament.id):
        raise AlreadyRegistered("User is already registered for this tournament")

    if await count_seated(session, tournament.id) >= tournament.capacity:
        raise TournamentFull("Tournament is full")

    try:
        attendance = await create_attendance(session, user.id, tournament.id)
    except IntegrityError:
        # Lost a race against a concurrent registration for the same pair
        await session.rollback()
        raise AlreadyRegistered("User is already registered for this tournament")

    logger.info(f"User {user.id} registered for tournament {tournament.id}")
    return attendance


async def change_status(
    session: AsyncSession,
    attendance_id: UUID,
    requested: AttendanceStatus,
    admin: Optional[Admin] = None
) -> Attendance:
    """
    Apply an admin transition to an attendance record.

    Marking a record attended stamps the check-in fields, credits the
    tournament's point value and refreshes the user's loyalty projection in
    the same transaction.

    Raises:
        AttendanceNotFound: no record with this id
        InvalidTransition: the transition is not allowed from the current
            status, or a concurrent change moved the record first
        TournamentFull: a rejected record is re-approved while every seat is taken
    """
    attendance = await get_attendance_by_id(session, attendance_id)
    if attendance is None:
        raise AttendanceNotFound("Attendance record not found")

    current = attendance.attendance_status
    if not can_transition(current, requested):
        raise InvalidTransition(current, requested)

    # A rejected record gave up its seat
    if current == AttendanceStatus.REJECTED:
        if await count_seated(session, attendance.tournament_id) >= attendance.tournament.capacity:
            raise TournamentFull("Tournament is full")

    values = {}
    if requested == AttendanceStatus.ATTENDED:
        values = {
            "checked_in_by": admin.user_id if admin else None,
            "checked_in_at": utcnow(),
            "loyalty_points_earned": attendance.tournament.loyalty_points_value or 1,
        }

    updated = await transition_status(session, attendance.id, current, requested, **values)
    if not updated:
        await session.rollback()
        logger.warning(f"Attendance {attendance_id} changed concurrently, '{requested.value}' not applied")
        raise InvalidTransition(current, requested)

    if requested == AttendanceStatus.ATTENDED:
        await refresh_loyalty_projection(session, attendance.user_id)

    add_audit_log(
        session,
        admin_id=admin.id if admin else None,
        action=f"attendance_{requested.value.replace('-', '_')}",
        resource_type="attendance",
        resource_id=attendance.id,
        details={"from": current.value, "to": requested.value, "user_id": str(attendance.user_id)}
    )
    await session.commit()

    logger.info(f"Attendance {attendance_id}: {current.value} -> {requested.value}")
    return await get_attendance_by_id(session, attendance_id)
