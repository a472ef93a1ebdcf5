"""
Payment Ledger Recorder (Domain Logic).

Records money received against bills and money paid to vehicle owners.
Each call writes the payment, the ledger entry and every derived status
change as one unit inside the caller's transaction.

Ledger convention:
- RECEIVABLE entry per bill payment, credit = amount - TDS (cash received)
- PAYABLE entry per vehicle payment, debit = amount
Bill.paid_amount tracks the gross amount, so it differs from the ledger by
the TDS withheld.
"""

import logging
from datetime import date
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationFailedError, PreconditionFailedError
from backend.app.core.validators import first_error, required, validate_amount, validate_non_negative
from backend.app.domain.billing import bill_lifecycle
from backend.app.domain.billing.billing_service import BillingService
from backend.app.domain.billing.tax_calculator import round2
from backend.app.domain.consignments.consignment_service import ConsignmentService
from backend.app.models.bill import Bill
from backend.app.models.billing_enums import BillStatus, LedgerType, VehiclePaymentType
from backend.app.models.enums import PartyType
from backend.app.models.ledger_entry import LedgerEntry
from backend.app.models.notification import NotificationType
from backend.app.models.payment import Payment, VehiclePayment
from backend.app.schemas.billing import PaymentCreate, VehiclePaymentCreate
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.party_service import PartyService
from backend.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class PaymentRecorder:

    @staticmethod
    async def _find_by_idempotency_key(db: AsyncSession, key: str) -> Optional[Payment]:
        result = await db.execute(select(Payment).where(Payment.idempotency_key == key))
        return result.scalar_one_or_none()

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        bill_id: int,
        data: PaymentCreate,
        user: Optional[dict] = None
    ) -> Tuple[Payment, Bill]:
        """
        Record a payment against a bill.

        Flow:
        1. Idempotency check (a known key returns the earlier payment)
        2. Validate amounts
        3. Lock the bill, reject PAID/CANCELLED bills and overpayment
        4. Update paid amount and status
        5. Payment row + RECEIVABLE ledger entry
        6. Cascade to the linked consignment

        Returns:
            (payment, updated bill)

        Raises:
            ValidationFailedError: Bad amount or TDS
            PreconditionFailedError: Bill closed, or payment exceeds outstanding amount
        """
        if data.idempotency_key:
            existing = await PaymentRecorder._find_by_idempotency_key(db, data.idempotency_key)
            if existing:
                if existing.bill_id != bill_id:
                    raise PreconditionFailedError(
                        "Idempotency key was already used for a different bill",
                        details={"idempotency_key": data.idempotency_key, "bill_id": existing.bill_id}
                    )
                logger.info("Payment %s replayed for key %s", existing.id, data.idempotency_key)
                return existing, await BillingService.get(db, bill_id)

        error = first_error(
            validate_amount(data.amount, "Payment amount"),
            validate_non_negative(data.tds_amount, "TDS amount"),
        )
        if not error and data.tds_amount >= data.amount:
            error = "TDS must be less than the payment amount"
        if error:
            raise ValidationFailedError(error)

        bill = await BillingService.get_for_update(db, bill_id)

        if bill.status in bill_lifecycle.CLOSED_STATUSES:
            raise PreconditionFailedError(
                f"Bill {bill.bill_number} is {bill.status.value} and cannot accept payments",
                details={"bill_id": bill.id, "status": bill.status.value}
            )

        new_paid = round2(bill.paid_amount + data.amount)
        if new_paid > bill.total_amount + settings.payment_tolerance:
            raise PreconditionFailedError(
                "Payment exceeds outstanding amount",
                details={"outstanding_amount": bill.outstanding_amount, "amount": data.amount}
            )

        previous_status = bill.status
        bill.paid_amount = new_paid
        bill.status = bill_lifecycle.status_after_payment(new_paid, bill.total_amount)
        fully_paid = bill.status == BillStatus.PAID

        payment_date = data.date or date.today()
        created_by_id = (user or {}).get("user_id")

        payment = Payment(
            date=payment_date,
            party_id=bill.party_id,
            bill_id=bill.id,
            amount=data.amount,
            tds_amount=data.tds_amount,
            mode=data.mode,
            reference=data.reference or None,
            notes=data.notes or None,
            idempotency_key=data.idempotency_key or None,
            created_by_id=created_by_id,
        )
        db.add(payment)
        await db.flush()

        db.add(LedgerEntry(
            date=payment_date,
            party_id=bill.party_id,
            type=LedgerType.RECEIVABLE,
            debit=0.0,
            credit=round2(data.amount - data.tds_amount),
            description=f"Payment received for bill {bill.bill_number}",
            payment_id=payment.id,
            created_by_id=created_by_id,
        ))

        if bill.consignment_id is not None:
            await ConsignmentService.apply_bill_payment(db, bill.consignment_id, fully_paid, data.amount)

        await log_user_action(
            db, user, AuditAction.PAYMENT_RECORDED, "bill", bill.id,
            {"payment_id": payment.id, "amount": data.amount, "tds_amount": data.tds_amount, "mode": data.mode.value}
        )
        await db.flush()

        await NotificationService.notify(
            db,
            title="Payment Received",
            message=f"₹{data.amount:.2f} received against bill {bill.bill_number}",
            type=NotificationType.PAYMENT,
            entity_type="bill",
            entity_id=bill.id
        )

        logger.info(
            "Payment %s on bill %s: amount=%.2f tds=%.2f paid=%.2f/%.2f %s -> %s",
            payment.id, bill.bill_number, data.amount, data.tds_amount,
            new_paid, bill.total_amount, previous_status.value, bill.status.value
        )
        return payment, bill

    @staticmethod
    async def record_vehicle_payment(
        db: AsyncSession,
        data: VehiclePaymentCreate,
        user: Optional[dict] = None
    ) -> VehiclePayment:
        """
        Record a payment to a vehicle owner.

        ADVANCE accumulates into the consignment's advance_paid, BALANCE and
        EXTRA into balance_paid. Payments that would take the total paid out
        above the agreed vehicle freight are rejected.

        Raises:
            ValidationFailedError: Bad amount, or payee is not a vehicle owner
            ResourceNotFoundError: Unknown party or consignment
            PreconditionFailedError: Payment exceeds the vehicle freight
        """
        error = first_error(
            required(data.party_id, "Vehicle owner is required"),
            validate_amount(data.amount, "Payment amount"),
        )
        if error:
            raise ValidationFailedError(error)

        owner = await PartyService.get(db, data.party_id)
        if owner.type != PartyType.VEHICLE_OWNER:
            raise ValidationFailedError("Vehicle payments can only be made to vehicle owners")

        consignment = None
        if data.consignment_id is not None:
            consignment = await ConsignmentService.get_for_update(db, data.consignment_id)
            if consignment.vehicle_freight is not None:
                paid_out = round2(consignment.advance_paid + consignment.balance_paid + data.amount)
                if paid_out > consignment.vehicle_freight + settings.payment_tolerance:
                    raise PreconditionFailedError(
                        "Vehicle payment exceeds agreed vehicle freight",
                        details={
                            "vehicle_freight": consignment.vehicle_freight,
                            "already_paid": round2(consignment.advance_paid + consignment.balance_paid),
                        }
                    )

            if data.type == VehiclePaymentType.ADVANCE:
                consignment.advance_paid = round2(consignment.advance_paid + data.amount)
            else:
                consignment.balance_paid = round2(consignment.balance_paid + data.amount)

        payment_date = data.date or date.today()
        created_by_id = (user or {}).get("user_id")

        vehicle_payment = VehiclePayment(
            date=payment_date,
            party_id=owner.id,
            consignment_id=data.consignment_id,
            amount=data.amount,
            type=data.type,
            mode=data.mode,
            reference=data.reference or None,
            notes=data.notes or None,
            created_by_id=created_by_id,
        )
        db.add(vehicle_payment)
        await db.flush()

        description = f"Vehicle payment ({data.type.value}) to owner"
        if consignment:
            description = f"{description} for GR {consignment.lr_number}"

        db.add(LedgerEntry(
            date=payment_date,
            party_id=owner.id,
            type=LedgerType.PAYABLE,
            debit=data.amount,
            credit=0.0,
            description=description,
            vehicle_payment_id=vehicle_payment.id,
            created_by_id=created_by_id,
        ))

        await log_user_action(
            db, user, AuditAction.VEHICLE_PAYMENT_RECORDED, "vehicle_payment", vehicle_payment.id,
            {"party_id": owner.id, "consignment_id": data.consignment_id, "amount": data.amount, "type": data.type.value}
        )
        await db.flush()

        logger.info(
            "Vehicle payment %s: %s %.2f to party %s (consignment %s)",
            vehicle_payment.id, data.type.value, data.amount, owner.id, data.consignment_id
        )
        return vehicle_payment

    @staticmethod
    async def list_payments(db: AsyncSession, bill_id: int):
        await BillingService.get(db, bill_id)
        result = await db.execute(
            select(Payment).where(Payment.bill_id == bill_id).order_by(Payment.date, Payment.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_vehicle_payments(
        db: AsyncSession,
        party_id: Optional[int] = None,
        consignment_id: Optional[int] = None,
        limit: int = 50
    ):
        query = select(VehiclePayment).order_by(VehiclePayment.date.desc(), VehiclePayment.id.desc())
        if party_id:
            query = query.where(VehiclePayment.party_id == party_id)
        if consignment_id:
            query = query.where(VehiclePayment.consignment_id == consignment_id)
        result = await db.execute(query.limit(limit))
        return list(result.scalars().all())
