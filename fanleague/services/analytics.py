"""
Admin read models: user listing, analytics and their exports
"""

import csv
import io
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.db.base import utcnow
from fanleague.models.enums import AttendanceStatus
from fanleague.repos.attendance_repo import count_by_status, recent_attendance, registration_counts
from fanleague.repos.loyalty_repo import attended_counts
from fanleague.repos.tournament_repo import (
    SEATED_STATUSES,
    count_tournaments,
    registrations_by_tournament,
)
from fanleague.repos.user_repo import count_users, get_users
from fanleague.services.loyalty import REWARD_KEYS, loyalty_tier

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = ("fullName", "email", "location", "loyaltyPoints", "attendedEvents", "createdAt")

USER_EXPORT_FIELDS = (
    "id", "fullName", "email", "countryCode", "phoneNumber", "location",
    "favoriteGames", "language", "isVerified", "loyaltyPoints",
    "attendedEvents", "registeredEvents", "createdAt",
)

LOYALTY_TIERS = ("none",) + REWARD_KEYS


def _sort_key(sort_by: str):
    if sort_by in ("loyaltyPoints", "attendedEvents"):
        return lambda row: row[sort_by]
    if sort_by == "createdAt":
        return lambda row: row["createdAt"] or ""
    return lambda row: (row.get(sort_by) or "").lower()


async def list_users(
    session: AsyncSession,
    q: Optional[str] = None,
    game: Optional[str] = None,
    location: Optional[str] = None,
    sort_by: str = "fullName",
    order: str = "asc",
    limit: Optional[int] = 50,
    offset: int = 0
) -> Dict:
    """
    Admin user listing with attendance counts.

    Args:
        session: Database session
        q: Search over name, email and phone
        game: Only users with this favorite game
        location: Only users in this location
        sort_by: One of USER_SORT_FIELDS
        order: "asc" or "desc"
        limit: Page size
        offset: Page start

    Returns:
        Dict with users (current page), total (after filtering), and the
        games and locations available for filtering
    """
    users = await get_users(session, q=q, location=location)
    attended = await attended_counts(session)
    registered = await registration_counts(session)

    games = sorted({g for user in users for g in (user.favorite_games or [])})
    locations = sorted({user.location for user in users if user.location})

    if game:
        users = [user for user in users if game in (user.favorite_games or [])]

    rows = [
        {
            **user.to_dict(),
            "attendedEvents": attended.get(user.id, 0),
            "registeredEvents": registered.get(user.id, 0),
        }
        for user in users
    ]

    if sort_by not in USER_SORT_FIELDS:
        sort_by = "fullName"
    rows.sort(key=_sort_key(sort_by), reverse=(order == "desc"))

    return {
        "success": True,
        "users": rows[offset:offset + limit] if limit is not None else rows[offset:],
        "total": len(rows),
        "games": games,
        "locations": locations,
    }


def _count_list(counter: Counter, label: str) -> List[Dict]:
    return [
        {label: key, "count": count}
        for key, count in sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    ]


async def get_analytics(session: AsyncSession, recent_limit: int = 10) -> Dict:
    """
    Totals and distributions for the admin analytics page.

    Loyalty tiers are read from the users' projection columns.
    """
    now = utcnow()
    users = await get_users(session)

    by_location = Counter(user.location for user in users if user.location)
    by_game = Counter(g for user in users for g in (user.favorite_games or []))
    tiers = Counter(loyalty_tier(user.rewards) for user in users)

    recent = await recent_attendance(session, limit=recent_limit)

    analytics = {
        "totalUsers": len(users),
        "verifiedUsers": await count_users(session, verified_only=True),
        "totalTournaments": await count_tournaments(session),
        "upcomingTournaments": await count_tournaments(session, after=now),
        "totalRegistrations": await count_by_status(session, SEATED_STATUSES),
        "totalAttendance": await count_by_status(session, [AttendanceStatus.ATTENDED]),
        "usersByLocation": _count_list(by_location, "location"),
        "usersByGame": _count_list(by_game, "game"),
        "registrationsByTournament": [
            {
                "tournamentId": str(tournament.id),
                "tournamentTitle": tournament.title,
                "registrationCount": count,
                "capacity": tournament.capacity,
            }
            for tournament, count in await registrations_by_tournament(session)
        ],
        "loyaltyDistribution": [{"tier": tier, "count": tiers.get(tier, 0)} for tier in LOYALTY_TIERS],
        "recentActivity": [
            {
                "id": str(record.id),
                "type": record.attendance_status.value,
                "description": f"{record.user.full_name} - {record.tournament.title}",
                "date": record.updated_at.isoformat() if record.updated_at else None,
            }
            for record in recent
        ],
    }
    return analytics


def _csv_value(value):
    if isinstance(value, (list, tuple)):
        return ";".join(str(item) for item in value)
    if isinstance(value, dict):
        return ";".join(f"{key}={val}" for key, val in value.items())
    return value


def rows_to_csv(rows: Iterable[Dict], fieldnames: Sequence[str]) -> str:
    """Render dict rows as CSV text, flattening list values with ';'."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(fieldnames), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({key: _csv_value(row.get(key)) for key in fieldnames})
    return buffer.getvalue()


def analytics_to_csv(analytics: Dict) -> str:
    """
    Flatten the analytics dict into section,key,value rows.

    Scalar totals go under the "totals" section; each distribution contributes
    one row per entry.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["section", "key", "value"])

    for key, value in analytics.items():
        if not isinstance(value, list):
            writer.writerow(["totals", key, value])

    for entry in analytics.get("usersByLocation", []):
        writer.writerow(["usersByLocation", entry["location"], entry["count"]])
    for entry in analytics.get("usersByGame", []):
        writer.writerow(["usersByGame", entry["game"], entry["count"]])
    for entry in analytics.get("registrationsByTournament", []):
        writer.writerow([
            "registrationsByTournament",
            entry["tournamentTitle"],
            f"{entry['registrationCount']}/{entry['capacity']}",
        ])
    for entry in analytics.get("loyaltyDistribution", []):
        writer.writerow(["loyaltyDistribution", entry["tier"], entry["count"]])

    return buffer.getvalue()
