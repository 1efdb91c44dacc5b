"""
Audit log repository for admin action tracking
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from fanleague.models.audit_log import AuditLog


def add_audit_log(
    session: AsyncSession,
    admin_id: Optional[UUID],
    action: str,
    resource_type: str,
    resource_id: Optional[UUID] = None,
    details: Optional[dict] = None
) -> AuditLog:
    """
    Stage an audit log entry in the caller's transaction.

    Args:
        session: Database session
        admin_id: Admin who performed the action
        action: Action performed
        resource_type: Type of resource affected
        resource_id: ID of resource affected
        details: Additional details as JSON

    Returns:
        Pending AuditLog instance (committed with the caller's change)
    """
    enhanced_details = {
        **(details or {}),
        "resource_type": resource_type,
        "resource_id": str(resource_id) if resource_id else None
    }

    audit_log = AuditLog(
        admin_id=admin_id,
        action=action,
        details=enhanced_details
    )
    session.add(audit_log)
    return audit_log


async def get_audit_logs(
    session: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    action: Optional[str] = None,
    admin_id: Optional[UUID] = None
) -> List[AuditLog]:
    """
    Get audit logs.

    Args:
        session: Database session
        limit: Maximum number of logs to return
        offset: Number of logs to skip
        action: Filter by action type
        admin_id: Filter by admin ID

    Returns:
        List of AuditLog instances
    """
    query = select(AuditLog).order_by(desc(AuditLog.created_at))

    if action:
        query = query.where(AuditLog.action == action)

    if admin_id:
        query = query.where(AuditLog.admin_id == admin_id)

    query = query.limit(limit).offset(offset)

    result = await session.execute(query)
    return list(result.scalars().all())
