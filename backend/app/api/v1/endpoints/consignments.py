"""
Consignment API Endpoints.

Booking (GR issue), detail edits and manual lifecycle transitions.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, WRITE_ROLES
from backend.app.core.reliability import run_in_transaction
from backend.app.db.session import get_db
from backend.app.domain.consignments.consignment_service import ConsignmentService, MAX_PAGE_SIZE
from backend.app.models.consignment_enums import ConsignmentStatus
from backend.app.schemas.consignment import (
    ConsignmentCreate, ConsignmentUpdate, ConsignmentStatusUpdate,
    ConsignmentResponse, ConsignmentListResponse, ConsignmentLogResponse
)

router = APIRouter(prefix="/consignments", tags=["Consignments"])


@router.get("", response_model=ConsignmentListResponse)
async def list_consignments(
    status_filter: Optional[ConsignmentStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List consignments, newest first.

    ``search`` matches the GR number, origin or destination city.
    """
    consignments, total = await ConsignmentService.list_consignments(db, status_filter, search, page, limit)
    return ConsignmentListResponse(
        consignments=[ConsignmentResponse.model_validate(c) for c in consignments],
        total=total,
        page=page,
        limit=limit
    )


@router.post("", response_model=ConsignmentResponse, status_code=status.HTTP_201_CREATED)
async def book_consignment(
    consignment_data: ConsignmentCreate,
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Book a consignment and issue its GR number.

    A vehicle assigned here must be AVAILABLE and is put ON_TRIP.
    """
    consignment = await run_in_transaction(db, ConsignmentService.book, consignment_data, current_user)
    await db.refresh(consignment)
    return consignment


@router.get("/{consignment_id}", response_model=ConsignmentResponse)
async def get_consignment(
    consignment_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ConsignmentService.get(db, consignment_id)


@router.patch("/{consignment_id}", response_model=ConsignmentResponse)
async def update_consignment(
    consignment_data: ConsignmentUpdate,
    consignment_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Edit booking details. Status changes go through /status."""
    consignment = await run_in_transaction(
        db, ConsignmentService.update_details, consignment_id, consignment_data, current_user
    )
    await db.refresh(consignment)
    return consignment


@router.post("/{consignment_id}/status", response_model=ConsignmentResponse)
async def update_consignment_status(
    req: ConsignmentStatusUpdate,
    consignment_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a consignment along its lifecycle.

    BOOKED -> IN_TRANSIT -> DELIVERED -> BILLED -> PARTIALLY_PAID -> PAID,
    or CANCELLED from BOOKED, IN_TRANSIT or DELIVERED.
    """
    consignment = await run_in_transaction(
        db, ConsignmentService.update_status, consignment_id, req.status, req.note, current_user
    )
    await db.refresh(consignment)
    return consignment


@router.get("/{consignment_id}/logs", response_model=List[ConsignmentLogResponse])
async def get_consignment_logs(
    consignment_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ConsignmentService.get_logs(db, consignment_id)
