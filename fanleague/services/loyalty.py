"""
Loyalty computation: points, reward flags, reward unlock activity and leaderboard ranking.

Everything here is a pure function over already-loaded rows. Points are the
number of attended records plus any admin-issued loyalty credits; reward
flags are thresholds over that total.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from fanleague.core.config import settings
from fanleague.core.i18n import t
from fanleague.models.attendance import Attendance
from fanleague.models.loyalty_credit import LoyaltyCredit

# (reward key, points required), ascending
REWARD_THRESHOLDS: Tuple[Tuple[str, int], ...] = (
    ("scarf", 1),
    ("vipTicket", 3),
    ("jersey", 10),
)

REWARD_KEYS = tuple(key for key, _ in REWARD_THRESHOLDS)


def compute_rewards(points: int) -> Dict[str, bool]:
    """Reward flags unlocked by a point total."""
    return {key: points >= threshold for key, threshold in REWARD_THRESHOLDS}


def loyalty_tier(rewards: Dict[str, bool]) -> str:
    """Highest unlocked reward, or "none"."""
    tier = "none"
    for key in REWARD_KEYS:
        if rewards.get(key):
            tier = key
    return tier


def sort_chronologically(attended: Iterable[Attendance]) -> List[Attendance]:
    return sorted(attended, key=lambda record: (record.event_date or datetime.min, str(record.id)))


def compute_points(attended: Sequence[Attendance], credits: Sequence[LoyaltyCredit] = ()) -> int:
    total = len(attended) + sum(credit.points or 0 for credit in credits)
    return max(total, 0)


def compute_loyalty_rewards(attended: Sequence[Attendance], credits: Sequence[LoyaltyCredit] = ()) -> Dict[str, bool]:
    rewards = compute_rewards(compute_points(attended, credits))
    for credit in credits:
        if credit.reward is not None:
            rewards[credit.reward.value] = True
    return rewards


def attended_event_entry(record: Attendance) -> Dict:
    """Requires record.tournament to be loaded."""
    tournament = record.tournament
    return {
        "id": str(record.id),
        "tournamentId": str(tournament.id),
        "tournamentTitle": tournament.title,
        "date": tournament.date.isoformat() if tournament.date else None,
        "pointsEarned": record.loyalty_points_earned or 1,
    }


def compute_loyalty(attended: Sequence[Attendance], credits: Sequence[LoyaltyCredit] = ()) -> Dict:
    """
    Loyalty summary for one user.

    Args:
        attended: the user's attendance records with status "attended",
            tournaments loaded
        credits: the user's loyalty credits

    Returns:
        Dict with points, maxPoints, rewards and attendedEvents
    """
    return {
        "points": compute_points(attended, credits),
        "maxPoints": settings.max_loyalty_points,
        "rewards": compute_loyalty_rewards(attended, credits),
        "attendedEvents": [attended_event_entry(record) for record in attended],
    }


def _threshold_crossings(
    attended: Sequence[Attendance],
    credits: Sequence[LoyaltyCredit],
) -> Dict[str, datetime]:
    """Date at which the running point total first reached each threshold."""
    timeline = [(record.event_date, 1) for record in attended]
    timeline += [(credit.created_at, credit.points or 0) for credit in credits if credit.points]
    timeline.sort(key=lambda item: item[0] or datetime.min)

    crossings: Dict[str, datetime] = {}
    running = 0
    for when, delta in timeline:
        running += delta
        for key, threshold in REWARD_THRESHOLDS:
            if key not in crossings and running >= threshold:
                crossings[key] = when
    return crossings


def reward_unlocks(
    attended: Sequence[Attendance],
    credits: Sequence[LoyaltyCredit] = (),
    lang: str = "en",
) -> List[Dict]:
    """
    Activity entries for unlocked rewards.

    Each entry is dated by the record that pushed the running total over the
    reward threshold. An explicitly awarded reward uses the award date. A
    reward with no identifiable source is left out of the feed. Dates are
    returned as datetimes so callers can merge and sort feeds.
    """
    rewards = compute_loyalty_rewards(attended, credits)
    crossings = _threshold_crossings(sort_chronologically(attended), credits)

    awarded: Dict[str, datetime] = {}
    for credit in sorted(credits, key=lambda c: c.created_at or datetime.min):
        if credit.reward is not None:
            awarded.setdefault(credit.reward.value, credit.created_at)

    entries = []
    for key in REWARD_KEYS:
        if not rewards[key]:
            continue
        when = crossings.get(key) or awarded.get(key)
        if when is None:
            continue
        entries.append({
            "id": f"reward-{key}",
            "type": "reward",
            "title": t("dashboard.activity.rewardUnlocked", lang),
            "description": t(f"loyalty.rewards.{key}", lang),
            "date": when,
        })
    return entries


def rank_leaderboard(
    rows: Iterable[Tuple[UUID, Optional[str], int]],
    limit: Optional[int] = None,
) -> List[Dict]:
    """
    Rank users by attended count, highest first.

    Ties are broken by name, then id, so the ordering is deterministic.

    Args:
        rows: (user_id, full_name, attended_count) tuples
        limit: maximum number of entries (defaults to settings.leaderboard_size)
    """
    if limit is None:
        limit = settings.leaderboard_size
    ordered = sorted(rows, key=lambda row: (-int(row[2] or 0), row[1] or "", str(row[0])))
    return [
        {"id": str(user_id), "name": name, "points": int(count or 0), "rank": index + 1}
        for index, (user_id, name, count) in enumerate(ordered[:limit])
    ]


def find_rank(leaderboard: Sequence[Dict], user_id) -> Optional[int]:
    """Rank of the user on the leaderboard, or None when not listed."""
    for entry in leaderboard:
        if entry["id"] == str(user_id):
            return entry["rank"]
    return None
