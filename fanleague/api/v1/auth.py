"""
Phone verification API endpoints
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.core.config import settings
from fanleague.core.metrics import VERIFICATION_COUNT
from fanleague.core.phone import normalize_e164
from fanleague.db.base import utcnow
from fanleague.db.session import get_db
from fanleague.repos.user_repo import (
    AmbiguousPhoneNumber,
    get_user_by_e164,
    mark_user_verified,
    mark_verification_pending,
)
from fanleague.services.verification import (
    APPROVED,
    VerificationProvider,
    VerificationProviderError,
    get_verification_provider,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class SendVerificationRequest(BaseModel):
    """Send verification request model"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    phone_number: str = Field(..., alias="phoneNumber", min_length=1)


class VerifyCodeRequest(BaseModel):
    """Verify code request model"""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    code: str = Field(..., min_length=1)


async def find_user_by_phone(session: AsyncSession, phone_number: str):
    """Resolve the account behind a full international number or raise 404/409."""
    try:
        user = await get_user_by_e164(session, phone_number)
    except AmbiguousPhoneNumber as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "Phone number matches more than one account"}
        )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "User not found"}
        )
    return user


@router.post("/auth/send-verification")
async def send_verification(
    payload: SendVerificationRequest,
    session: AsyncSession = Depends(get_db),
    provider: VerificationProvider = Depends(get_verification_provider)
):
    """
    Send a one-time code to a registered phone number.

    The number is the full international form, country code included. Resending
    is allowed at any time.
    """
    phone_number = normalize_e164(payload.phone_number)

    user = await find_user_by_phone(session, phone_number)

    try:
        provider_status = await provider.send(phone_number)
    except VerificationProviderError as e:
        VERIFICATION_COUNT.labels(action="send", status="error").inc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to send verification code", "details": e.message}
        )

    expires_at = utcnow() + timedelta(minutes=settings.verification_code_ttl_minutes)
    await mark_verification_pending(session, user.id, expires_at)

    VERIFICATION_COUNT.labels(action="send", status=provider_status).inc()
    logger.info(f"Verification code sent for user {user.id}: {provider_status}")

    return {
        "success": True,
        "status": provider_status,
        "message": "Verification code sent successfully"
    }


@router.post("/auth/verify-code")
async def verify_code(
    payload: VerifyCodeRequest,
    session: AsyncSession = Depends(get_db),
    provider: VerificationProvider = Depends(get_verification_provider)
):
    """
    Check a one-time code and mark the user verified when the provider approves it.

    Verifying an already verified user succeeds without changing anything.
    """
    phone_number = normalize_e164(payload.phone_number)

    try:
        provider_status = await provider.check(phone_number, payload.code)
    except VerificationProviderError as e:
        VERIFICATION_COUNT.labels(action="check", status="error").inc()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to verify code", "details": e.message}
        )

    VERIFICATION_COUNT.labels(action="check", status=provider_status).inc()

    if provider_status != APPROVED:
        logger.info(f"Verification code rejected by provider: {provider_status}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "status": provider_status,
                "message": "Invalid verification code"
            }
        )

    user = await find_user_by_phone(session, phone_number)

    if await mark_user_verified(session, user.id):
        logger.info(f"User {user.id} verified")
    await session.refresh(user)

    return {
        "success": True,
        "status": provider_status,
        "message": "Phone number verified successfully",
        "user": user.to_public_dict()
    }
