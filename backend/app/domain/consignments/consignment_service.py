"""
Consignment Service (Domain Logic).

Booking, detail edits and status transitions for consignments, plus the
cascades that billing and payments apply to a consignment.

Nothing here commits: every method joins the caller's transaction so the
GR number, the status log row and the vehicle status change are written
together or not at all.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ValidationFailedError, PreconditionFailedError, ResourceNotFoundError
)
from backend.app.core.validators import (
    first_error, required, validate_amount, validate_non_negative, validate_phone, validate_eway_bill
)
from backend.app.domain.consignments import lifecycle
from backend.app.domain.numbering.sequence_generator import SequenceGenerator
from backend.app.models.consignment import Consignment, ConsignmentLog
from backend.app.models.consignment_enums import ConsignmentStatus
from backend.app.models.enums import VehicleStatus
from backend.app.models.notification import NotificationType
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.consignment import ConsignmentCreate, ConsignmentUpdate
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.party_service import PartyService
from backend.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


class ConsignmentService:

    @staticmethod
    async def get(db: AsyncSession, consignment_id: int) -> Consignment:
        consignment = await db.get(Consignment, consignment_id)
        if not consignment:
            raise ResourceNotFoundError("Consignment", consignment_id)
        return consignment

    @staticmethod
    async def get_for_update(db: AsyncSession, consignment_id: int) -> Consignment:
        """Load a consignment with a row lock held until the transaction ends."""
        result = await db.execute(
            select(Consignment)
            .where(Consignment.id == consignment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        consignment = result.scalar_one_or_none()
        if not consignment:
            raise ResourceNotFoundError("Consignment", consignment_id)
        return consignment

    @staticmethod
    async def _lock_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
        result = await db.execute(
            select(Vehicle)
            .where(Vehicle.id == vehicle_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        vehicle = result.scalar_one_or_none()
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    @staticmethod
    async def _ensure_parties(db: AsyncSession, *party_ids: Optional[int]) -> None:
        for party_id in party_ids:
            if party_id is not None:
                await PartyService.get(db, party_id)

    @staticmethod
    def _write_log(db: AsyncSession, consignment_id: int, status: ConsignmentStatus, note: Optional[str]) -> ConsignmentLog:
        entry = ConsignmentLog(consignment_id=consignment_id, status=status, note=note)
        db.add(entry)
        return entry

    @staticmethod
    async def book(db: AsyncSession, data: ConsignmentCreate, user: Optional[dict] = None) -> Consignment:
        """
        Book a consignment.

        Flow:
        1. Validate input
        2. Check parties exist and lock the vehicle (must be AVAILABLE)
        3. Issue the GR number
        4. Insert consignment + "Consignment booked" log row
        5. Put the vehicle ON_TRIP

        Raises:
            ValidationFailedError: Missing or malformed fields
            ResourceNotFoundError: Unknown party or vehicle
            PreconditionFailedError: Vehicle is not AVAILABLE
        """
        error = first_error(
            required(data.consignor_id, "Consignor is required"),
            required(data.consignee_id, "Consignee is required"),
            required(data.from_city, "Origin city is required"),
            required(data.to_city, "Destination city is required"),
            required(data.description, "Cargo description is required"),
            validate_amount(data.freight_amount, "Freight amount"),
            validate_phone(data.driver_phone),
            validate_eway_bill(data.eway_bill_number),
            validate_non_negative(data.advance_paid, "Advance paid"),
            validate_non_negative(data.vehicle_freight, "Vehicle freight") if data.vehicle_freight is not None else None,
        )
        if error:
            raise ValidationFailedError(error)

        if data.vehicle_freight is not None and data.advance_paid > data.vehicle_freight + settings.payment_tolerance:
            raise ValidationFailedError("Advance paid cannot exceed vehicle freight")

        await ConsignmentService._ensure_parties(db, data.consignor_id, data.consignee_id, data.agent_id)

        vehicle = None
        if data.vehicle_id is not None:
            vehicle = await ConsignmentService._lock_vehicle(db, data.vehicle_id)
            if vehicle.status != VehicleStatus.AVAILABLE:
                raise PreconditionFailedError(
                    f"Vehicle {vehicle.vehicle_number} is {vehicle.status.value.replace('_', ' ')} and cannot be assigned",
                    details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
                )

        lr_number = await SequenceGenerator.next_lr_number(db)

        consignment = Consignment(
            lr_number=lr_number,
            booking_date=data.booking_date,
            consignor_id=data.consignor_id,
            consignee_id=data.consignee_id,
            agent_id=data.agent_id,
            from_city=data.from_city.strip(),
            from_state=(data.from_state or "").strip(),
            to_city=data.to_city.strip(),
            to_state=(data.to_state or "").strip(),
            description=data.description.strip(),
            freight_type=data.freight_type,
            weight=data.weight,
            quantity=data.quantity,
            unit=data.unit or None,
            declared_value=data.declared_value,
            eway_bill_number=(data.eway_bill_number or "").strip() or None,
            invoice_challan_no=data.invoice_challan_no or None,
            freight_amount=data.freight_amount,
            payment_type=data.payment_type,
            vehicle_id=data.vehicle_id,
            driver_name=data.driver_name or None,
            driver_phone=data.driver_phone or None,
            vehicle_freight=data.vehicle_freight,
            advance_paid=data.advance_paid or 0.0,
            balance_paid=0.0,
            status=ConsignmentStatus.BOOKED,
            notes=data.notes or None,
        )
        db.add(consignment)
        await db.flush()

        ConsignmentService._write_log(db, consignment.id, ConsignmentStatus.BOOKED, "Consignment booked")

        if vehicle:
            vehicle.status = VehicleStatus.ON_TRIP

        await log_user_action(
            db, user, AuditAction.CONSIGNMENT_BOOKED, "consignment", consignment.id,
            {"lr_number": lr_number, "vehicle_id": data.vehicle_id}
        )
        await db.flush()

        logger.info("Consignment %s booked (id=%s, vehicle=%s)", lr_number, consignment.id, data.vehicle_id)
        return consignment

    @staticmethod
    async def update_details(
        db: AsyncSession,
        consignment_id: int,
        data: ConsignmentUpdate,
        user: Optional[dict] = None
    ) -> Consignment:
        """
        Edit non-status booking details. Only fields sent by the caller change.
        """
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)

        error = first_error(
            validate_phone(changes.get("driver_phone")),
            validate_eway_bill(changes.get("eway_bill_number")),
            validate_amount(changes["freight_amount"], "Freight amount") if "freight_amount" in changes else None,
            validate_non_negative(changes["vehicle_freight"], "Vehicle freight") if changes.get("vehicle_freight") is not None else None,
            *[
                required(changes[key], message)
                for key, message in (
                    ("consignor_id", "Consignor is required"),
                    ("consignee_id", "Consignee is required"),
                    ("from_city", "Origin city is required"),
                    ("to_city", "Destination city is required"),
                    ("description", "Cargo description is required"),
                    ("booking_date", "Booking date is required"),
                    ("freight_type", "Freight type is required"),
                    ("payment_type", "Payment type is required"),
                )
                if key in changes
            ],
        )
        if error:
            raise ValidationFailedError(error)

        consignment = await ConsignmentService.get_for_update(db, consignment_id)
        await ConsignmentService._ensure_parties(
            db, changes.get("consignor_id"), changes.get("consignee_id"), changes.get("agent_id")
        )

        vehicle_freight = changes.get("vehicle_freight", consignment.vehicle_freight)
        if vehicle_freight is not None:
            paid_out = consignment.advance_paid + consignment.balance_paid
            if paid_out > vehicle_freight + settings.payment_tolerance:
                raise PreconditionFailedError(
                    "Vehicle freight cannot be less than the amount already paid to the vehicle owner",
                    details={"paid_out": paid_out}
                )

        for key, value in changes.items():
            if value is None and key in ("from_state", "to_state"):
                value = ""
            elif isinstance(value, str):
                value = value.strip() or (None if key not in ("from_state", "to_state") else "")
            setattr(consignment, key, value)

        await log_user_action(
            db, user, AuditAction.CONSIGNMENT_UPDATED, "consignment", consignment.id,
            {"fields": sorted(changes)}
        )
        await db.flush()

        logger.info("Consignment %s details updated: %s", consignment.lr_number, ", ".join(sorted(changes)))
        return consignment

    @staticmethod
    async def update_status(
        db: AsyncSession,
        consignment_id: int,
        target: ConsignmentStatus,
        note: Optional[str] = None,
        user: Optional[dict] = None
    ) -> Consignment:
        """
        Apply a manual lifecycle transition.

        Entering DELIVERED raises a delivery notification. Entering DELIVERED
        or CANCELLED releases an ON_TRIP vehicle.

        Raises:
            InvalidTransitionError: If the transition is not permitted
        """
        consignment = await ConsignmentService.get_for_update(db, consignment_id)
        previous = consignment.status
        target = lifecycle.ensure_transition(previous, target)

        consignment.status = target
        ConsignmentService._write_log(db, consignment.id, target, note or None)

        if target in lifecycle.VEHICLE_RELEASING_STATUSES and consignment.vehicle_id:
            vehicle = await ConsignmentService._lock_vehicle(db, consignment.vehicle_id)
            if vehicle.status == VehicleStatus.ON_TRIP:
                vehicle.status = VehicleStatus.AVAILABLE
                logger.info("Vehicle %s released by consignment %s", vehicle.vehicle_number, consignment.lr_number)

        await log_user_action(
            db, user, AuditAction.CONSIGNMENT_STATUS_CHANGED, "consignment", consignment.id,
            {"from": previous.value, "to": target.value, "note": note}
        )
        await db.flush()

        if target == ConsignmentStatus.DELIVERED:
            await NotificationService.notify(
                db,
                title="Consignment Delivered",
                message=f"GR {consignment.lr_number} has been delivered",
                type=NotificationType.DELIVERY,
                entity_type="consignment",
                entity_id=consignment.id
            )

        logger.info("Consignment %s: %s -> %s", consignment.lr_number, previous.value, target.value)
        return consignment

    @staticmethod
    async def apply_bill_created(db: AsyncSession, consignment_id: int, bill_number: str) -> Consignment:
        """
        Move a DELIVERED consignment to BILLED after a bill was raised on it.

        Any other status is left alone.
        """
        consignment = await ConsignmentService.get_for_update(db, consignment_id)
        new_status = lifecycle.status_after_bill_created(consignment.status)

        if new_status is None:
            logger.debug(
                "Consignment %s is %s, not moved to BILLED by bill %s",
                consignment.lr_number, consignment.status.value, bill_number
            )
            return consignment

        consignment.status = new_status
        ConsignmentService._write_log(db, consignment.id, new_status, f"Bill {bill_number} generated")
        await db.flush()

        logger.info("Consignment %s billed by %s", consignment.lr_number, bill_number)
        return consignment

    @staticmethod
    async def apply_bill_payment(
        db: AsyncSession,
        consignment_id: int,
        bill_fully_paid: bool,
        amount: float
    ) -> Optional[ConsignmentStatus]:
        """
        Cascade a bill payment to the linked consignment.

        Returns:
            The new consignment status, or None when the cascade was skipped
        """
        consignment = await ConsignmentService.get_for_update(db, consignment_id)
        new_status = lifecycle.status_after_bill_payment(consignment.status, bill_fully_paid)

        if new_status is None:
            logger.debug(
                "Payment cascade skipped for consignment %s (status %s, fully_paid=%s)",
                consignment.lr_number, consignment.status.value, bill_fully_paid
            )
            return None

        note = "Bill fully paid" if bill_fully_paid else f"Partial payment ₹{amount:.2f}"
        consignment.status = new_status
        ConsignmentService._write_log(db, consignment.id, new_status, note)
        await db.flush()

        logger.info("Consignment %s -> %s after payment", consignment.lr_number, new_status.value)
        return new_status

    @staticmethod
    async def list_consignments(
        db: AsyncSession,
        status: Optional[ConsignmentStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Consignment], int]:
        """
        Page through consignments, newest first.

        ``search`` matches the GR number or either city.
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)

        filters = []
        if status:
            filters.append(Consignment.status == status)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            filters.append(or_(
                Consignment.lr_number.ilike(pattern),
                Consignment.from_city.ilike(pattern),
                Consignment.to_city.ilike(pattern),
            ))

        total = (await db.execute(select(func.count(Consignment.id)).where(*filters))).scalar_one()

        result = await db.execute(
            select(Consignment)
            .where(*filters)
            .order_by(Consignment.booking_date.desc(), Consignment.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def get_logs(db: AsyncSession, consignment_id: int) -> List[ConsignmentLog]:
        """Status history, oldest first."""
        await ConsignmentService.get(db, consignment_id)
        result = await db.execute(
            select(ConsignmentLog)
            .where(ConsignmentLog.consignment_id == consignment_id)
            .order_by(ConsignmentLog.created_at, ConsignmentLog.id)
        )
        return list(result.scalars().all())
