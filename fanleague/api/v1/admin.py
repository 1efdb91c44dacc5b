"""
Admin API endpoints
"""

import io
import json
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.api.deps import load_user, parse_uuid
from fanleague.core.auth import (
    create_admin_token,
    get_current_admin,
    require_permission,
    verify_password,
)
from fanleague.core.config import settings
from fanleague.core.metrics import ATTENDANCE_TRANSITION_COUNT
from fanleague.db.session import get_db
from fanleague.models.admin import Admin
from fanleague.models.enums import AttendanceStatus, RewardType
from fanleague.repos.admin_repo import get_admin_by_email, record_login
from fanleague.repos.attendance_repo import list_attendance
from fanleague.repos.audit_log_repo import add_audit_log, get_audit_logs
from fanleague.repos.loyalty_repo import add_credit
from fanleague.services.analytics import (
    USER_EXPORT_FIELDS,
    analytics_to_csv,
    get_analytics,
    list_users,
    rows_to_csv,
)
from fanleague.services.attendance import AttendanceNotFound, InvalidTransition, TournamentFull, change_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")

ATTENDANCE_ACTIONS = {
    "approve": AttendanceStatus.APPROVED,
    "reject": AttendanceStatus.REJECTED,
    "attend": AttendanceStatus.ATTENDED,
    "no-show": AttendanceStatus.NO_SHOW,
}

EXPORT_FORMAT_PATTERN = "^(csv|json)$"


class AdminLoginRequest(BaseModel):
    """Admin login request model"""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminLoginResponse(BaseModel):
    """Admin login response model"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    admin: dict


class LoyaltyPointsRequest(BaseModel):
    """Points adjustment; negative values deduct"""
    points: int
    reason: Optional[str] = Field(None, max_length=255)


class RewardAwardRequest(BaseModel):
    """Manual reward grant"""
    reward: RewardType
    reason: Optional[str] = Field(None, max_length=255)


def _export_response(content: str, filename: str, export_format: str) -> StreamingResponse:
    media_type = "text/csv" if export_format == "csv" else "application/json"
    return StreamingResponse(
        io.BytesIO(content.encode("utf-8")),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}.{export_format}"}
    )


@router.post("/login", response_model=AdminLoginResponse)
async def admin_login(
    login_data: AdminLoginRequest,
    session: AsyncSession = Depends(get_db)
):
    """
    Admin login with the linked user's email and the admin password.
    """
    admin = await get_admin_by_email(session, login_data.email)
    if not admin or not verify_password(login_data.password, admin.password_hash):
        logger.warning("Admin login failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials"}
        )

    await record_login(session, admin.id)
    logger.info(f"Admin {admin.id} logged in")

    return AdminLoginResponse(
        access_token=create_admin_token(admin),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        admin=admin.to_dict()
    )


@router.get("/me")
async def admin_me(admin: Admin = Depends(get_current_admin)):
    return {"success": True, "admin": admin.to_dict()}


@router.get("/users")
async def admin_list_users(
    q: Optional[str] = Query(None),
    game: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    sort_by: str = Query("fullName", alias="sortBy"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: Admin = Depends(require_permission("manage_users")),
    session: AsyncSession = Depends(get_db)
):
    """
    Search, filter and sort users.

    Search covers name, email and phone. Also returns the games and locations
    present in the result for filter menus.
    """
    return await list_users(
        session,
        q=q,
        game=game,
        location=location,
        sort_by=sort_by,
        order=order,
        limit=limit,
        offset=offset
    )


@router.get("/users/export")
async def admin_export_users(
    export_format: str = Query("csv", alias="format", pattern=EXPORT_FORMAT_PATTERN),
    q: Optional[str] = Query(None),
    game: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    admin: Admin = Depends(require_permission("export_data")),
    session: AsyncSession = Depends(get_db)
):
    """Export users as CSV or JSON."""
    listing = await list_users(session, q=q, game=game, location=location, limit=None)
    rows = [{key: row.get(key) for key in USER_EXPORT_FIELDS} for row in listing["users"]]

    add_audit_log(
        session,
        admin_id=admin.id,
        action="export_users",
        resource_type="user",
        details={"format": export_format, "count": len(rows)}
    )
    await session.commit()

    if export_format == "csv":
        content = rows_to_csv(rows, USER_EXPORT_FIELDS)
    else:
        content = json.dumps(rows, ensure_ascii=False)
    return _export_response(content, "users", export_format)


@router.get("/attendance")
async def admin_list_attendance(
    status_filter: Optional[str] = Query(None, alias="status"),
    tournament_id: Optional[str] = Query(None, alias="tournamentId"),
    q: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: Admin = Depends(require_permission("manage_attendance")),
    session: AsyncSession = Depends(get_db)
):
    """
    Attendance requests for the approval queue.

    status accepts any attendance status; "pending" is the same as "registered".
    """
    attendance_status = None
    if status_filter:
        if status_filter == "pending":
            attendance_status = AttendanceStatus.REGISTERED
        else:
            try:
                attendance_status = AttendanceStatus(status_filter)
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={"error": "Invalid status", "details": status_filter}
                )

    records = await list_attendance(
        session,
        status=attendance_status,
        tournament_id=parse_uuid(tournament_id, "Tournament ID") if tournament_id else None,
        q=q,
        limit=limit,
        offset=offset
    )

    return {
        "success": True,
        "attendance": [
            {
                **record.to_dict(),
                "user": {
                    "id": str(record.user.id),
                    "fullName": record.user.full_name,
                    "email": record.user.email,
                    "phoneNumber": record.user.phone_number,
                },
                "tournament": {
                    "id": str(record.tournament.id),
                    "title": record.tournament.title,
                    "date": record.tournament.date.isoformat() if record.tournament.date else None,
                },
            }
            for record in records
        ]
    }


@router.post("/attendance/{attendance_id}/{action}")
async def admin_attendance_action(
    attendance_id: str,
    action: str,
    admin: Admin = Depends(require_permission("manage_attendance")),
    session: AsyncSession = Depends(get_db)
):
    """
    Approve, reject, check in (attend) or mark a no-show.

    Returns 409 when the record's current status does not allow the action.
    """
    requested = ATTENDANCE_ACTIONS.get(action)
    if requested is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Unknown attendance action", "details": action}
        )

    try:
        attendance = await change_status(
            session,
            parse_uuid(attendance_id, "Attendance ID"),
            requested,
            admin=admin
        )
    except AttendanceNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": str(e)}
        )
    except InvalidTransition as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "Invalid status transition", "details": str(e)}
        )
    except TournamentFull as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": str(e)}
        )

    ATTENDANCE_TRANSITION_COUNT.labels(status=requested.value).inc()
    return {"success": True, "attendance": attendance.to_dict()}


@router.post("/loyalty/{user_id}/points")
async def admin_adjust_points(
    user_id: str,
    payload: LoyaltyPointsRequest,
    admin: Admin = Depends(require_permission("manage_users")),
    session: AsyncSession = Depends(get_db)
):
    """
    Add (or deduct) loyalty points.

    The adjustment is stored as a credit and the user's points and reward
    flags are recomputed in the same transaction.
    """
    if payload.points == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Points must be a non-zero integer"}
        )

    user = await load_user(session, user_id)
    credit = await add_credit(
        session,
        user.id,
        points=payload.points,
        reason=payload.reason,
        admin_id=admin.id
    )
    add_audit_log(
        session,
        admin_id=admin.id,
        action="update_loyalty_points",
        resource_type="user",
        resource_id=user.id,
        details={"points": payload.points, "reason": payload.reason}
    )
    await session.commit()
    await session.refresh(user)

    return {"success": True, "credit": credit.to_dict(), "user": user.to_dict()}


@router.post("/loyalty/{user_id}/rewards")
async def admin_award_reward(
    user_id: str,
    payload: RewardAwardRequest,
    admin: Admin = Depends(require_permission("manage_users")),
    session: AsyncSession = Depends(get_db)
):
    """Grant a reward regardless of the user's points."""
    user = await load_user(session, user_id)
    credit = await add_credit(
        session,
        user.id,
        reward=payload.reward,
        reason=payload.reason,
        admin_id=admin.id
    )
    add_audit_log(
        session,
        admin_id=admin.id,
        action="award_reward",
        resource_type="user",
        resource_id=user.id,
        details={"reward": payload.reward.value, "reason": payload.reason}
    )
    await session.commit()
    await session.refresh(user)

    return {"success": True, "credit": credit.to_dict(), "user": user.to_dict()}


@router.get("/analytics")
async def admin_analytics(
    admin: Admin = Depends(require_permission("view_analytics")),
    session: AsyncSession = Depends(get_db)
):
    return {"success": True, "analytics": await get_analytics(session)}


@router.get("/analytics/export")
async def admin_export_analytics(
    export_format: str = Query("json", alias="format", pattern=EXPORT_FORMAT_PATTERN),
    admin: Admin = Depends(require_permission("export_data")),
    session: AsyncSession = Depends(get_db)
):
    """Export the analytics report as JSON or CSV."""
    analytics = await get_analytics(session)

    add_audit_log(
        session,
        admin_id=admin.id,
        action="export_analytics",
        resource_type="analytics",
        details={"format": export_format}
    )
    await session.commit()

    if export_format == "csv":
        content = analytics_to_csv(analytics)
    else:
        content = json.dumps(analytics, ensure_ascii=False)
    return _export_response(content, "analytics", export_format)


@router.get("/audit-logs")
async def admin_audit_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    action: Optional[str] = Query(None),
    admin: Admin = Depends(require_permission("view_analytics")),
    session: AsyncSession = Depends(get_db)
):
    logs = await get_audit_logs(session, limit=limit, offset=offset, action=action)
    return {"success": True, "logs": [log.to_dict() for log in logs]}
