"""
Party Service.

Companies, agents and vehicle owners, with their ledger statements.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ValidationFailedError, PreconditionFailedError, ResourceNotFoundError
from backend.app.core.validators import (
    first_error, validate_gstin, validate_pan, validate_phone, validate_pincode, validate_email
)
from backend.app.domain.billing.tax_calculator import round2
from backend.app.models.enums import PartyType
from backend.app.models.bill import Bill
from backend.app.models.consignment import Consignment
from backend.app.models.ledger_entry import LedgerEntry
from backend.app.models.party import Party
from backend.app.models.payment import VehiclePayment
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.party import PartyCreate, PartyUpdate, LedgerLine, LedgerStatement
from backend.app.services.audit import log_user_action, AuditAction

logger = logging.getLogger(__name__)

UPPERCASE_FIELDS = ("gstin", "pan")


def _clean(values: dict) -> dict:
    cleaned = {}
    for key, value in values.items():
        if isinstance(value, str):
            value = value.strip() or None
            if value and key in UPPERCASE_FIELDS:
                value = value.upper()
        cleaned[key] = value
    return cleaned


def _check_formats(values: dict) -> None:
    error = first_error(
        validate_phone(values.get("phone")),
        validate_email(values.get("email")),
        validate_pincode(values.get("pincode")),
        validate_gstin(values.get("gstin")),
        validate_pan(values.get("pan")),
    )
    if error:
        raise ValidationFailedError(error)


class PartyService:

    @staticmethod
    async def get(db: AsyncSession, party_id: int) -> Party:
        party = await db.get(Party, party_id)
        if not party or party.deleted_at is not None:
            raise ResourceNotFoundError("Party", party_id)
        return party

    @staticmethod
    async def create(db: AsyncSession, data: PartyCreate, user: Optional[dict] = None) -> Party:
        values = _clean(data.model_dump())
        if not values.get("name"):
            raise ValidationFailedError("Name is required")
        _check_formats(values)

        party = Party(**values)
        db.add(party)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.PARTY_CREATED, "party", party.id,
            {"type": party.type.value, "name": party.name}
        )
        logger.info("Party %s created: %s (%s)", party.id, party.name, party.type.value)
        return party

    @staticmethod
    async def update(db: AsyncSession, party_id: int, data: PartyUpdate, user: Optional[dict] = None) -> Party:
        values = _clean(data.model_dump(exclude_unset=True))
        if "name" in values and not values["name"]:
            raise ValidationFailedError("Name is required")
        _check_formats(values)

        party = await PartyService.get(db, party_id)
        for key, value in values.items():
            setattr(party, key, value)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.PARTY_UPDATED, "party", party.id, {"fields": sorted(values)}
        )
        return party

    @staticmethod
    async def set_active(db: AsyncSession, party_id: int, is_active: bool, user: Optional[dict] = None) -> Party:
        """Activate or deactivate a party. Inactive parties drop out of the default listing."""
        party = await PartyService.get(db, party_id)
        if party.is_active == is_active:
            return party

        party.is_active = is_active
        await db.flush()

        action = AuditAction.PARTY_ACTIVATED if is_active else AuditAction.PARTY_DEACTIVATED
        await log_user_action(db, user, action, "party", party.id, {"name": party.name})
        logger.info("Party %s %s", party.id, "activated" if is_active else "deactivated")
        return party

    @staticmethod
    async def linked_records(db: AsyncSession, party_id: int) -> int:
        counts = [
            select(func.count(Consignment.id)).where(or_(
                Consignment.consignor_id == party_id,
                Consignment.consignee_id == party_id,
                Consignment.agent_id == party_id,
            )),
            select(func.count(Bill.id)).where(Bill.party_id == party_id),
            select(func.count(Vehicle.id)).where(Vehicle.owner_id == party_id),
            select(func.count(VehiclePayment.id)).where(VehiclePayment.party_id == party_id),
        ]
        total = 0
        for query in counts:
            total += (await db.execute(query)).scalar_one()
        return total

    @staticmethod
    async def delete(db: AsyncSession, party_id: int, user: Optional[dict] = None) -> None:
        """
        Soft-delete a party with no history.

        Raises:
            PreconditionFailedError: Consignments, bills, vehicles or vehicle
                payments reference the party
        """
        party = await PartyService.get(db, party_id)

        linked = await PartyService.linked_records(db, party_id)
        if linked:
            raise PreconditionFailedError(
                f"Cannot delete: {linked} linked record(s) exist. Deactivate instead.",
                details={"party_id": party_id, "linked_records": linked}
            )

        party.deleted_at = datetime.now(timezone.utc)
        party.is_active = False
        await db.flush()

        await log_user_action(db, user, AuditAction.PARTY_DELETED, "party", party.id, {"name": party.name})
        logger.info("Party %s deleted: %s", party.id, party.name)

    @staticmethod
    async def list_parties(
        db: AsyncSession,
        type: Optional[PartyType] = None,
        search: Optional[str] = None,
        active_only: bool = True
    ) -> List[Party]:
        query = select(Party).where(Party.deleted_at.is_(None)).order_by(Party.name)
        if type:
            query = query.where(Party.type == type)
        if active_only:
            query = query.where(Party.is_active == True)
        if search and search.strip():
            query = query.where(Party.name.ilike(f"%{search.strip()}%"))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def ledger_statement(db: AsyncSession, party_id: int) -> LedgerStatement:
        """
        Chronological ledger with a running balance (debit - credit).
        """
        party = await PartyService.get(db, party_id)
        result = await db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.party_id == party_id)
            .order_by(LedgerEntry.date, LedgerEntry.id)
        )

        balance = total_debit = total_credit = 0.0
        lines = []
        for entry in result.scalars().all():
            balance = round2(balance + entry.debit - entry.credit)
            total_debit += entry.debit
            total_credit += entry.credit
            lines.append(LedgerLine(
                id=entry.id,
                date=entry.date,
                type=entry.type,
                description=entry.description,
                debit=entry.debit,
                credit=entry.credit,
                balance=balance,
            ))

        return LedgerStatement(
            party_id=party.id,
            party_name=party.name,
            entries=lines,
            total_debit=round2(total_debit),
            total_credit=round2(total_credit),
            closing_balance=balance,
        )
