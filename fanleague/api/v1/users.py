"""
User registration API endpoints
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status, Depends
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.core.metrics import REGISTRATION_COUNT
from fanleague.core.phone import normalize_country_code, normalize_phone_number
from fanleague.db.session import get_db
from fanleague.models.enums import Language
from fanleague.repos.user_repo import create_user, find_existing_user

logger = logging.getLogger(__name__)

router = APIRouter()


class UserCreateRequest(BaseModel):
    """Registration form"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    full_name: str = Field(..., alias="fullName", min_length=1, max_length=255)
    email: EmailStr
    country_code: str = Field(..., alias="countryCode", min_length=1, max_length=8)
    phone_number: str = Field(..., alias="phoneNumber", min_length=1, max_length=32)
    location: str = Field(..., min_length=1, max_length=255)
    favorite_games: Optional[List[str]] = Field(None, alias="favoriteGames")
    language: Language = Language.EN


def _duplicate_field(existing, email: str, phone_number: str) -> str:
    if existing is not None and existing.email.lower() == email.lower():
        return "email"
    return "phoneNumber"


@router.post("/users/create", status_code=status.HTTP_201_CREATED)
async def create_user_endpoint(
    payload: UserCreateRequest,
    session: AsyncSession = Depends(get_db)
):
    """
    Register a new, unverified user.

    The phone number is stored without a leading "+" and the country code as
    "+<digits>". Returns 409 with the clashing field when the email or phone
    number is already registered.
    """
    phone_number = normalize_phone_number(payload.phone_number)
    country_code = normalize_country_code(payload.country_code)
    if not phone_number or country_code == "+":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing required fields", "details": "phoneNumber and countryCode must contain digits"}
        )

    existing = await find_existing_user(session, payload.email, phone_number)
    if existing:
        field = _duplicate_field(existing, payload.email, phone_number)
        logger.info(f"Registration rejected, {field} already in use")
        REGISTRATION_COUNT.labels(status="conflict").inc()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "User already exists", "field": field}
        )

    try:
        user = await create_user(
            session=session,
            full_name=payload.full_name,
            email=payload.email,
            country_code=country_code,
            phone_number=phone_number,
            location=payload.location,
            favorite_games=payload.favorite_games,
            language=payload.language
        )
    except IntegrityError:
        # Concurrent registration with the same email or phone won the insert
        await session.rollback()
        existing = await find_existing_user(session, payload.email, phone_number)
        REGISTRATION_COUNT.labels(status="conflict").inc()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "User already exists", "field": _duplicate_field(existing, payload.email, phone_number)}
        )

    REGISTRATION_COUNT.labels(status="created").inc()
    logger.info(f"User {user.id} registered")

    return {
        "success": True,
        "message": "User created successfully",
        "user": user.to_public_dict()
    }
