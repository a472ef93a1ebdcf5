"""
Audit logging service for tracking office actions.

Audit rows join the caller's transaction: an action that rolls back leaves
no audit trace.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    USER_CREATED = "USER_CREATED"
    USER_BLOCKED = "USER_BLOCKED"
    USER_UNBLOCKED = "USER_UNBLOCKED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"

    PARTY_CREATED = "PARTY_CREATED"
    PARTY_UPDATED = "PARTY_UPDATED"
    PARTY_ACTIVATED = "PARTY_ACTIVATED"
    PARTY_DEACTIVATED = "PARTY_DEACTIVATED"
    PARTY_DELETED = "PARTY_DELETED"
    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_STATUS_CHANGED = "VEHICLE_STATUS_CHANGED"
    VEHICLE_DOCUMENT_ADDED = "VEHICLE_DOCUMENT_ADDED"
    VEHICLE_DOCUMENT_DELETED = "VEHICLE_DOCUMENT_DELETED"
    VEHICLE_INCIDENT_LOGGED = "VEHICLE_INCIDENT_LOGGED"
    VEHICLE_INCIDENT_RESOLVED = "VEHICLE_INCIDENT_RESOLVED"

    CONSIGNMENT_BOOKED = "CONSIGNMENT_BOOKED"
    CONSIGNMENT_UPDATED = "CONSIGNMENT_UPDATED"
    CONSIGNMENT_STATUS_CHANGED = "CONSIGNMENT_STATUS_CHANGED"

    BILL_CREATED = "BILL_CREATED"
    BILL_STATUS_CHANGED = "BILL_STATUS_CHANGED"
    BILL_CANCELLED = "BILL_CANCELLED"

    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    VEHICLE_PAYMENT_RECORDED = "VEHICLE_PAYMENT_RECORDED"

    SETTINGS_UPDATED = "SETTINGS_UPDATED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Add an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Email of actor
        entity_type: Kind of record acted on ("consignment", "bill", ...)
        entity_id: ID of the record acted on
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance (flushed, not committed)
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def log_user_action(
    db: AsyncSession,
    user: Optional[Dict[str, Any]],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an action by the authenticated user (the ``get_current_user`` payload, None for system)."""
    user = user or {}
    return await log_event(
        db=db,
        action=action,
        actor_id=user.get("user_id"),
        actor_username=user.get("sub"),
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> List[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
