"""
Admin API Endpoints.

Provides admin-only user management and the audit trail.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from backend.app.db.session import get_db
from backend.app.models.enums import ADMIN_ROLES
from backend.app.models.user import User
from backend.app.schemas.admin import (
    UserListResponse, UserListItem, BlockUserRequest,
    AdminActionResponse, AuditTrailResponse, AuditLogResponse
)
from backend.app.core.guards import require_admin
from backend.app.services.audit import log_user_action, AuditAction, get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all office users (admin-only).
    """
    total = (await db.execute(select(func.count(User.id)))).scalar()

    offset = (page - 1) * page_size
    query = select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)
    users = result.scalars().all()

    return UserListResponse(
        users=[UserListItem.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )


async def _set_active(db: AsyncSession, admin: dict, user_id: int, active: bool, reason: str = None) -> AdminActionResponse:
    target_user = await db.get(User, user_id)

    if not target_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if not active:
        # Prevent blocking another admin or self
        if target_user.role in ADMIN_ROLES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot block an owner or manager"
            )
        if target_user.id == admin["user_id"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot block yourself"
            )

    if target_user.is_active == active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already active" if active else "User is already blocked"
        )

    # Tokens of a blocked user stop working: get_current_user re-checks is_active
    target_user.is_active = active
    action = AuditAction.USER_UNBLOCKED if active else AuditAction.USER_BLOCKED

    audit_log = await log_user_action(
        db, admin, action, "user", target_user.id, {"reason": reason} if reason else None
    )
    await db.commit()

    return AdminActionResponse(
        success=True,
        message=f"User '{target_user.email}' has been {'unblocked' if active else 'blocked'}",
        user_id=user_id,
        action=action,
        audit_log_id=audit_log.id
    )


@router.post("/users/{user_id}/block", response_model=AdminActionResponse)
async def block_user(
    user_id: int,
    request: BlockUserRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Block a user; their existing tokens are rejected from the next request."""
    return await _set_active(db, admin, user_id, False, request.reason)


@router.post("/users/{user_id}/unblock", response_model=AdminActionResponse)
async def unblock_user(
    user_id: int,
    request: BlockUserRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Restore a blocked user."""
    return await _set_active(db, admin, user_id, True, request.reason)


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    entity_type: str = Query(None, description="Filter by entity type"),
    entity_id: int = Query(None, description="Filter by entity ID"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail with optional filtering (admin-only).
    """
    logs = await get_audit_trail(
        db=db,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
