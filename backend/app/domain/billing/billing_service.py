"""
Billing Service (Domain Logic).

Raises bills (number, GST split, consignment cascade, notification) and
drives the manual bill lifecycle. Payments live in the payment recorder.

Must run inside the caller's transaction: nothing here commits.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationFailedError, ResourceNotFoundError
from backend.app.core.validators import first_error, required, validate_amount
from backend.app.domain.billing import bill_lifecycle
from backend.app.domain.billing.tax_calculator import compute_tax, is_interstate_supply
from backend.app.domain.consignments.consignment_service import ConsignmentService, MAX_PAGE_SIZE
from backend.app.domain.numbering.sequence_generator import SequenceGenerator
from backend.app.models.bill import Bill
from backend.app.models.billing_enums import BillStatus
from backend.app.models.notification import NotificationType
from backend.app.schemas.billing import BillCreate
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.party_service import PartyService
from backend.app.services.notification_service import NotificationService
from backend.app.services.settings_service import SettingsService, COMPANY_STATE

logger = logging.getLogger(__name__)


class BillingService:

    @staticmethod
    async def get(db: AsyncSession, bill_id: int) -> Bill:
        bill = await db.get(Bill, bill_id)
        if not bill:
            raise ResourceNotFoundError("Bill", bill_id)
        return bill

    @staticmethod
    async def get_for_update(db: AsyncSession, bill_id: int) -> Bill:
        """Load a bill with a row lock so concurrent payments serialise on it."""
        result = await db.execute(
            select(Bill)
            .where(Bill.id == bill_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        bill = result.scalar_one_or_none()
        if not bill:
            raise ResourceNotFoundError("Bill", bill_id)
        return bill

    @staticmethod
    async def _resolve_gst_rate(db: AsyncSession, gst_rate: Optional[float]) -> float:
        if gst_rate is not None:
            return gst_rate
        value = await SettingsService.get_value(db, "gst_rate", settings.default_gst_rate)
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationFailedError("Invalid GST rate", details={"gst_rate": value})

    @staticmethod
    async def create_bill(db: AsyncSession, data: BillCreate, user: Optional[dict] = None) -> Bill:
        """
        Raise a bill on a party.

        Flow:
        1. Validate input and compute tax (rejects before a number is issued)
        2. Issue the bill number
        3. Insert the bill as DRAFT
        4. Move a DELIVERED consignment to BILLED
        5. Best-effort "Bill Generated" notification

        Raises:
            ValidationFailedError: Missing party, bad amount or GST rate, due date before bill date
            ResourceNotFoundError: Unknown party or consignment
        """
        error = first_error(
            required(data.party_id, "Party is required"),
            validate_amount(data.subtotal, "Freight amount"),
            "Due date cannot be before bill date" if data.due_date and data.due_date < data.bill_date else None,
        )
        if error:
            raise ValidationFailedError(error)

        party = await PartyService.get(db, data.party_id)

        if data.consignment_id is not None:
            await ConsignmentService.get(db, data.consignment_id)

        gst_rate = await BillingService._resolve_gst_rate(db, data.gst_rate)

        is_interstate = data.is_interstate
        if is_interstate is None:
            company_state = await SettingsService.get_value(db, COMPANY_STATE, "")
            is_interstate = is_interstate_supply(party.state, company_state)

        tax = compute_tax(data.subtotal, gst_rate, is_interstate)

        bill_number = await SequenceGenerator.next_bill_number(db)

        bill = Bill(
            bill_number=bill_number,
            bill_date=data.bill_date,
            due_date=data.due_date,
            party_id=party.id,
            consignment_id=data.consignment_id,
            subtotal=data.subtotal,
            gst_rate=gst_rate,
            is_interstate=is_interstate,
            cgst=tax.cgst,
            sgst=tax.sgst,
            igst=tax.igst,
            total_amount=tax.total,
            paid_amount=0.0,
            status=BillStatus.DRAFT,
            description=data.description or None,
            notes=data.notes or None,
            created_by_id=(user or {}).get("user_id"),
        )
        db.add(bill)
        await db.flush()

        billed_for = party.name
        if data.consignment_id is not None:
            consignment = await ConsignmentService.apply_bill_created(db, data.consignment_id, bill_number)
            billed_for = consignment.lr_number

        await log_user_action(
            db, user, AuditAction.BILL_CREATED, "bill", bill.id,
            {"bill_number": bill_number, "total_amount": tax.total, "consignment_id": data.consignment_id}
        )
        await db.flush()

        await NotificationService.notify(
            db,
            title="Bill Generated",
            message=f"Bill {bill_number} created for {billed_for}",
            type=NotificationType.BILL,
            entity_type="bill",
            entity_id=bill.id
        )

        logger.info(
            "Bill %s created for party %s: subtotal=%.2f total=%.2f interstate=%s",
            bill_number, party.id, data.subtotal, tax.total, is_interstate
        )
        return bill

    @staticmethod
    async def update_status(
        db: AsyncSession,
        bill_id: int,
        target: BillStatus,
        user: Optional[dict] = None
    ) -> Bill:
        """
        Apply a manual marker (GENERATED or SENT).

        Cancellation goes through ``cancel_bill``; paid states are derived
        from payments only.
        """
        target = BillStatus(target)
        if target == BillStatus.CANCELLED:
            return await BillingService.cancel_bill(db, bill_id, user)

        bill = await BillingService.get_for_update(db, bill_id)
        previous = bill.status
        bill.status = bill_lifecycle.ensure_manual_transition(previous, target)

        await log_user_action(
            db, user, AuditAction.BILL_STATUS_CHANGED, "bill", bill.id,
            {"from": previous.value, "to": target.value}
        )
        await db.flush()

        logger.info("Bill %s: %s -> %s", bill.bill_number, previous.value, target.value)
        return bill

    @staticmethod
    async def cancel_bill(db: AsyncSession, bill_id: int, user: Optional[dict] = None) -> Bill:
        """
        Cancel a bill that has no payments.

        The linked consignment keeps its status.

        Raises:
            PreconditionFailedError: Payments were recorded
            InvalidTransitionError: Bill is already PAID or CANCELLED
        """
        bill = await BillingService.get_for_update(db, bill_id)
        previous = bill.status
        bill_lifecycle.ensure_cancellable(previous, bill.paid_amount)

        bill.status = BillStatus.CANCELLED

        await log_user_action(
            db, user, AuditAction.BILL_CANCELLED, "bill", bill.id,
            {"from": previous.value, "bill_number": bill.bill_number}
        )
        await db.flush()

        logger.info("Bill %s cancelled (was %s)", bill.bill_number, previous.value)
        return bill

    @staticmethod
    async def list_bills(
        db: AsyncSession,
        status: Optional[BillStatus] = None,
        party_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Bill], int]:
        """Page through bills, newest first."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)

        filters = []
        if status:
            filters.append(Bill.status == status)
        if party_id:
            filters.append(Bill.party_id == party_id)

        total = (await db.execute(select(func.count(Bill.id)).where(*filters))).scalar_one()

        result = await db.execute(
            select(Bill)
            .where(*filters)
            .order_by(Bill.bill_date.desc(), Bill.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

