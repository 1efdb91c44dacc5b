"""
Loyalty API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.api.deps import load_user
from fanleague.db.session import get_db
from fanleague.services.dashboard import get_loyalty_data

router = APIRouter()


@router.get("/loyalty/user-data")
async def loyalty_user_data(
    user_id: Optional[str] = Query(None, alias="userId"),
    session: AsyncSession = Depends(get_db)
):
    """Loyalty summary, attendance leaderboard and the user's rank (null when unranked)."""
    user = await load_user(session, user_id)
    return await get_loyalty_data(session, user)
