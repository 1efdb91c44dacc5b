"""
Public tournament endpoints
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.api.deps import load_user, parse_uuid
from fanleague.db.base import utcnow
from fanleague.db.session import get_db
from fanleague.repos.tournament_repo import get_tournament_by_id, get_tournaments
from fanleague.services.attendance import AlreadyRegistered, TournamentFull, register_for_tournament

logger = logging.getLogger(__name__)

router = APIRouter()


class TournamentRegisterRequest(BaseModel):
    """Tournament registration request model"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    user_id: str = Field(..., alias="userId", min_length=1)


@router.get("/tournaments")
async def list_tournaments(
    game: Optional[str] = Query(None),
    upcoming: bool = Query(False),
    session: AsyncSession = Depends(get_db)
):
    """List tournaments by date, optionally only future ones or one game."""
    tournaments = await get_tournaments(
        session,
        game=game,
        after=utcnow() if upcoming else None
    )
    return {
        "success": True,
        "tournaments": [tournament.to_dict() for tournament in tournaments]
    }


@router.post("/tournaments/{tournament_id}/register", status_code=status.HTTP_201_CREATED)
async def register_tournament(
    tournament_id: str,
    payload: TournamentRegisterRequest,
    session: AsyncSession = Depends(get_db)
):
    """
    Register a user for a tournament.

    The attendance record starts in "registered" and waits for admin approval.
    Returns 409 when the user is already registered or the tournament is full.
    """
    tournament = await get_tournament_by_id(session, parse_uuid(tournament_id, "Tournament ID"))
    if tournament is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Tournament not found"}
        )

    user = await load_user(session, payload.user_id)

    try:
        attendance = await register_for_tournament(session, user, tournament)
    except (AlreadyRegistered, TournamentFull) as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": str(e)}
        )

    return {
        "success": True,
        "message": "Registered for tournament",
        "attendance": attendance.to_dict()
    }
