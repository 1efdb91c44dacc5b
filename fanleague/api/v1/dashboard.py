"""
User dashboard API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.api.deps import load_user
from fanleague.db.session import get_db
from fanleague.services.dashboard import get_dashboard_data

router = APIRouter()


@router.get("/dashboard/user-data")
async def dashboard_user_data(
    user_id: Optional[str] = Query(None, alias="userId"),
    session: AsyncSession = Depends(get_db)
):
    """
    Dashboard for one user: profile, loyalty summary, upcoming tournaments and activity feed.

    Loyalty is computed from attendance records on every request; activity
    titles follow the user's language.
    """
    user = await load_user(session, user_id)
    return await get_dashboard_data(session, user)
