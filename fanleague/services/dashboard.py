"""
Dashboard and loyalty page read models
"""

import logging
from datetime import datetime
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.core.config import settings
from fanleague.core.i18n import is_rtl, t
from fanleague.db.base import utcnow
from fanleague.models.enums import AttendanceStatus
from fanleague.models.user import User
from fanleague.repos.attendance_repo import get_user_attendance
from fanleague.repos.loyalty_repo import get_attended_records, get_credits, leaderboard_rows
from fanleague.repos.tournament_repo import get_tournaments
from fanleague.services.loyalty import (
    compute_loyalty,
    find_rank,
    rank_leaderboard,
    reward_unlocks,
)

logger = logging.getLogger(__name__)

OPEN_REGISTRATION_STATUSES = (AttendanceStatus.REGISTERED, AttendanceStatus.APPROVED)


def _isoformat(value):
    return value.isoformat() if isinstance(value, datetime) else value


def build_activities(registrations, attended, credits, lang: str = "en") -> List[Dict]:
    """
    Merge registrations, attendance and reward unlocks into one feed, newest first.

    Args:
        registrations: open registrations, tournaments loaded
        attended: attended records, tournaments loaded
        credits: the user's loyalty credits
        lang: language of the entry titles
    """
    activities = []

    for registration in registrations:
        activities.append({
            "id": f"registration-{registration.id}",
            "type": "registration",
            "title": t("dashboard.activity.registeredTournament", lang),
            "description": registration.tournament.title,
            "date": registration.created_at,
            "relatedId": str(registration.tournament_id),
            "relatedType": "tournaments",
        })

    for record in attended:
        activities.append({
            "id": f"attendance-{record.id}",
            "type": "attendance",
            "title": t("dashboard.activity.attendedTournament", lang),
            "description": record.tournament.title,
            "date": record.event_date,
            "relatedId": str(record.tournament_id),
            "relatedType": "tournaments",
        })

    activities.extend(reward_unlocks(attended, credits, lang))

    activities.sort(key=lambda entry: entry["date"] or datetime.min, reverse=True)
    for entry in activities:
        entry["date"] = _isoformat(entry["date"])
    return activities


async def get_dashboard_data(session: AsyncSession, user: User) -> Dict:
    """
    Everything the user dashboard shows, computed from attendance at request time.

    Returns:
        Dict with user, loyalty, upcomingTournaments and activities
    """
    lang = user.language.value if user.language else "en"

    attended = await get_attended_records(session, user.id)
    credits = await get_credits(session, user.id)

    upcoming = await get_tournaments(session, after=utcnow(), limit=settings.upcoming_tournaments_limit)
    open_registrations = await get_user_attendance(session, user.id, OPEN_REGISTRATION_STATUSES)
    registered_ids = {registration.tournament_id for registration in open_registrations}

    recent_registrations = sorted(
        open_registrations,
        key=lambda registration: registration.created_at or datetime.min,
        reverse=True
    )[:settings.recent_registrations_limit]

    return {
        "success": True,
        "user": {
            "id": str(user.id),
            "fullName": user.full_name,
            "email": user.email,
            "phoneNumber": user.phone_number,
            "location": user.location,
            "favoriteGames": list(user.favorite_games or []),
            "language": lang,
            "isRtl": is_rtl(lang),
        },
        "loyalty": compute_loyalty(attended, credits),
        "upcomingTournaments": [
            {
                "id": str(tournament.id),
                "title": tournament.title,
                "game": tournament.game,
                "date": _isoformat(tournament.date),
                "location": tournament.location,
                "isRegistered": tournament.id in registered_ids,
            }
            for tournament in upcoming
        ],
        "activities": build_activities(recent_registrations, attended, credits, lang),
    }


async def get_loyalty_data(session: AsyncSession, user: User) -> Dict:
    """
    Loyalty summary plus the attendance leaderboard and the user's rank on it.

    userRank is None when the user is not on the leaderboard.
    """
    attended = await get_attended_records(session, user.id)
    credits = await get_credits(session, user.id)

    leaderboard = rank_leaderboard(
        await leaderboard_rows(session, settings.leaderboard_size),
        limit=settings.leaderboard_size
    )

    return {
        "success": True,
        "loyalty": compute_loyalty(attended, credits),
        "leaderboard": leaderboard,
        "userRank": find_rank(leaderboard, user.id),
    }
