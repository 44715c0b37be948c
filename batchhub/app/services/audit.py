"""
Audit logging service.

Records who did what to which entity. Rows are added to the caller's
session and become durable with the caller's commit, so an audited
mutation and its audit row succeed or fail together.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from batchhub.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    USER_CREATED = "USER_CREATED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    TOKEN_REVOKED = "TOKEN_REVOKED"

    COMMUNITY_CREATED = "COMMUNITY_CREATED"
    COMMUNITY_JOINED = "COMMUNITY_JOINED"
    COMMUNITY_LEFT = "COMMUNITY_LEFT"
    COMMUNITY_SETTINGS_UPDATED = "COMMUNITY_SETTINGS_UPDATED"

    EVENT_CREATED = "EVENT_CREATED"

    EXPENSE_CREATED = "EXPENSE_CREATED"
    EXPENSE_DELETED = "EXPENSE_DELETED"
    SHARE_SETTLED = "SHARE_SETTLED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Add an audit row to the session and flush it.

    Args:
        db: Database session (caller commits)
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_email: Email of actor
        target_type: Kind of entity acted upon ("expense", "community", ...)
        target_id: ID of that entity
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        The pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        target_type=target_type,
        target_id=target_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    email: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an authentication event (login success/failure, logout)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_email=email,
        target_type="user",
        target_id=user_id,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> List[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_type:
        query = query.where(AuditLog.target_type == target_type)

    if target_id is not None:
        query = query.where(AuditLog.target_id == target_id)

    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
