"""
Billing API Endpoints.

Bills, payments against bills, and vehicle owner payments.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, require_admin, WRITE_ROLES
from backend.app.core.reliability import run_in_transaction
from backend.app.db.session import get_db
from backend.app.domain.billing.billing_service import BillingService
from backend.app.domain.consignments.consignment_service import MAX_PAGE_SIZE
from backend.app.domain.ledger.payment_recorder import PaymentRecorder
from backend.app.models.billing_enums import BillStatus
from backend.app.schemas.billing import (
    BillCreate, BillStatusUpdate, BillResponse, BillListResponse,
    PaymentCreate, PaymentResponse, PaymentRecordedResponse,
    VehiclePaymentCreate, VehiclePaymentResponse
)

router = APIRouter(prefix="/bills", tags=["Billing"])
vehicle_payments_router = APIRouter(prefix="/vehicle-payments", tags=["Billing - Vehicle Payments"])


@router.get("", response_model=BillListResponse)
async def list_bills(
    status_filter: Optional[BillStatus] = Query(None, alias="status"),
    party_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    bills, total = await BillingService.list_bills(db, status_filter, party_id, page, limit)
    return BillListResponse(
        bills=[BillResponse.model_validate(b) for b in bills],
        total=total,
        page=page,
        limit=limit
    )


@router.post("", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    bill_data: BillCreate,
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Raise a bill (DRAFT) with its number and GST split.

    A linked consignment in DELIVERED moves to BILLED.
    """
    bill = await run_in_transaction(db, BillingService.create_bill, bill_data, current_user)
    await db.refresh(bill)
    return bill


@router.get("/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await BillingService.get(db, bill_id)


@router.post("/{bill_id}/status", response_model=BillResponse)
async def update_bill_status(
    req: BillStatusUpdate,
    bill_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Mark a bill GENERATED or SENT."""
    bill = await run_in_transaction(db, BillingService.update_status, bill_id, req.status, current_user)
    await db.refresh(bill)
    return bill


@router.post("/{bill_id}/cancel", response_model=BillResponse)
async def cancel_bill(
    bill_id: int = Path(...),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Cancel a bill with no payments (OWNER / MANAGER only)."""
    bill = await run_in_transaction(db, BillingService.cancel_bill, bill_id, current_user)
    await db.refresh(bill)
    return bill


@router.get("/{bill_id}/payments", response_model=List[PaymentResponse])
async def list_bill_payments(
    bill_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await PaymentRecorder.list_payments(db, bill_id)


@router.post("/{bill_id}/payments", response_model=PaymentRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment_data: PaymentCreate,
    bill_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a payment against a bill.

    Updates the bill's paid amount and status, writes the ledger entry and
    cascades to the linked consignment, all in one transaction.
    """
    payment, bill = await run_in_transaction(db, PaymentRecorder.record_payment, bill_id, payment_data, current_user)
    await db.refresh(payment)
    await db.refresh(bill)
    return PaymentRecordedResponse(
        payment=PaymentResponse.model_validate(payment),
        bill=BillResponse.model_validate(bill)
    )


@vehicle_payments_router.get("", response_model=List[VehiclePaymentResponse])
async def list_vehicle_payments(
    party_id: Optional[int] = Query(None),
    consignment_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await PaymentRecorder.list_vehicle_payments(db, party_id, consignment_id, limit)


@vehicle_payments_router.post("", response_model=VehiclePaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_vehicle_payment(
    payment_data: VehiclePaymentCreate,
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Pay a vehicle owner (ADVANCE, BALANCE or EXTRA)."""
    vehicle_payment = await run_in_transaction(db, PaymentRecorder.record_vehicle_payment, payment_data, current_user)
    await db.refresh(vehicle_payment)
    return vehicle_payment
