"""
Vehicle Service.

Vehicle registration, detail edits and manual status changes, plus the
vehicle's document and incident records. Booking and delivery move vehicles
between AVAILABLE and ON_TRIP through the consignment service.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ValidationFailedError, PreconditionFailedError, ResourceNotFoundError
from backend.app.core.validators import (
    first_error, required, normalize_vehicle_number, validate_vehicle_number, validate_non_negative
)
from backend.app.models.enums import PartyType, VehicleStatus, IncidentStatus
from backend.app.models.party import Party
from backend.app.models.vehicle import Vehicle, VehicleDocument, VehicleIncident
from backend.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleDocumentCreate, VehicleIncidentCreate
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.party_service import PartyService

logger = logging.getLogger(__name__)


class VehicleService:

    @staticmethod
    async def get(db: AsyncSession, vehicle_id: int) -> Vehicle:
        vehicle = await db.get(Vehicle, vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    @staticmethod
    async def _get_for_update(db: AsyncSession, vehicle_id: int) -> Vehicle:
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
    async def _get_owner(db: AsyncSession, owner_id: int) -> Party:
        owner = await PartyService.get(db, owner_id)
        if owner.type != PartyType.VEHICLE_OWNER:
            raise ValidationFailedError("Vehicle owner must be a VEHICLE_OWNER party")
        return owner

    @staticmethod
    async def _ensure_number_free(db: AsyncSession, number: str, vehicle_id: Optional[int] = None) -> None:
        query = select(Vehicle.id).where(Vehicle.vehicle_number == number)
        if vehicle_id is not None:
            query = query.where(Vehicle.id != vehicle_id)
        if (await db.execute(query)).scalar_one_or_none():
            raise PreconditionFailedError(f"Vehicle {number} is already registered")

    @staticmethod
    async def create(db: AsyncSession, data: VehicleCreate, user: Optional[dict] = None) -> Vehicle:
        error = validate_vehicle_number(data.vehicle_number)
        if error:
            raise ValidationFailedError(error)
        number = normalize_vehicle_number(data.vehicle_number)

        owner = await VehicleService._get_owner(db, data.owner_id)
        await VehicleService._ensure_number_free(db, number)

        vehicle = Vehicle(
            vehicle_number=number,
            vehicle_type=data.vehicle_type.strip().upper(),
            capacity_tons=data.capacity_tons,
            owner_id=owner.id,
            status=VehicleStatus.AVAILABLE,
            notes=data.notes or None,
        )
        db.add(vehicle)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_CREATED, "vehicle", vehicle.id, {"vehicle_number": number}
        )
        logger.info("Vehicle %s registered for owner %s", number, owner.id)
        return vehicle

    @staticmethod
    async def update(
        db: AsyncSession,
        vehicle_id: int,
        data: VehicleUpdate,
        user: Optional[dict] = None
    ) -> Vehicle:
        """
        Edit vehicle details. Only fields sent by the caller change.

        Raises:
            ValidationFailedError: Blank or malformed number, blank type, owner
                is not a vehicle owner
            PreconditionFailedError: The new number belongs to another vehicle
        """
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)

        error = first_error(
            validate_vehicle_number(changes["vehicle_number"]) if "vehicle_number" in changes else None,
            required(changes["vehicle_type"], "Vehicle type is required") if "vehicle_type" in changes else None,
            required(changes["owner_id"], "Owner is required") if "owner_id" in changes else None,
        )
        if error:
            raise ValidationFailedError(error)

        vehicle = await VehicleService._get_for_update(db, vehicle_id)

        if "vehicle_number" in changes:
            changes["vehicle_number"] = normalize_vehicle_number(changes["vehicle_number"])
            await VehicleService._ensure_number_free(db, changes["vehicle_number"], vehicle.id)
        if "vehicle_type" in changes:
            changes["vehicle_type"] = changes["vehicle_type"].strip().upper()
        if "owner_id" in changes:
            await VehicleService._get_owner(db, changes["owner_id"])
        if "notes" in changes:
            changes["notes"] = (changes["notes"] or "").strip() or None

        for key, value in changes.items():
            setattr(vehicle, key, value)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_UPDATED, "vehicle", vehicle.id, {"fields": sorted(changes)}
        )
        logger.info("Vehicle %s details updated: %s", vehicle.vehicle_number, ", ".join(sorted(changes)))
        return vehicle

    @staticmethod
    async def set_status(
        db: AsyncSession,
        vehicle_id: int,
        status: VehicleStatus,
        user: Optional[dict] = None
    ) -> Vehicle:
        """
        Manual status change.

        ON_TRIP is only ever set by booking, and a vehicle on a trip is only
        released by delivery or cancellation of its consignment.
        """
        vehicle = await VehicleService._get_for_update(db, vehicle_id)

        status = VehicleStatus(status)
        if status == VehicleStatus.ON_TRIP:
            raise ValidationFailedError("Vehicles are put on a trip by booking a consignment")
        if vehicle.status == VehicleStatus.ON_TRIP:
            raise PreconditionFailedError(
                f"Vehicle {vehicle.vehicle_number} is ON TRIP; deliver or cancel its consignment first"
            )

        previous = vehicle.status
        vehicle.status = status
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_STATUS_CHANGED, "vehicle", vehicle.id,
            {"from": previous.value, "to": status.value}
        )
        logger.info("Vehicle %s: %s -> %s", vehicle.vehicle_number, previous.value, status.value)
        return vehicle

    @staticmethod
    async def list_vehicles(
        db: AsyncSession,
        status: Optional[VehicleStatus] = None,
        owner_id: Optional[int] = None
    ) -> List[Vehicle]:
        query = select(Vehicle).order_by(Vehicle.vehicle_number)
        if status:
            query = query.where(Vehicle.status == status)
        if owner_id:
            query = query.where(Vehicle.owner_id == owner_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    # Documents

    @staticmethod
    async def add_document(
        db: AsyncSession,
        vehicle_id: int,
        data: VehicleDocumentCreate,
        user: Optional[dict] = None
    ) -> VehicleDocument:
        error = required(data.type, "Document type is required")
        if not error and data.issue_date and data.expiry_date and data.expiry_date < data.issue_date:
            error = "Expiry date cannot be before issue date"
        if error:
            raise ValidationFailedError(error)

        vehicle = await VehicleService.get(db, vehicle_id)

        document = VehicleDocument(
            vehicle_id=vehicle.id,
            type=data.type.strip().upper(),
            document_no=(data.document_no or "").strip() or None,
            issue_date=data.issue_date,
            expiry_date=data.expiry_date,
            notes=data.notes or None,
        )
        db.add(document)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_DOCUMENT_ADDED, "vehicle", vehicle.id,
            {"document_id": document.id, "type": document.type}
        )
        logger.info("Document %s (%s) added to vehicle %s", document.id, document.type, vehicle.vehicle_number)
        return document

    @staticmethod
    async def list_documents(db: AsyncSession, vehicle_id: int) -> List[VehicleDocument]:
        """Documents of a vehicle, soonest expiry first (undated last)."""
        await VehicleService.get(db, vehicle_id)
        result = await db.execute(
            select(VehicleDocument)
            .where(VehicleDocument.vehicle_id == vehicle_id)
            .order_by(VehicleDocument.expiry_date.is_(None), VehicleDocument.expiry_date, VehicleDocument.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete_document(
        db: AsyncSession,
        vehicle_id: int,
        document_id: int,
        user: Optional[dict] = None
    ) -> None:
        document = await db.get(VehicleDocument, document_id)
        if not document or document.vehicle_id != vehicle_id:
            raise ResourceNotFoundError("Vehicle document", document_id)

        await db.delete(document)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_DOCUMENT_DELETED, "vehicle", vehicle_id,
            {"document_id": document_id, "type": document.type}
        )

    # Incidents

    @staticmethod
    async def log_incident(
        db: AsyncSession,
        vehicle_id: int,
        data: VehicleIncidentCreate,
        user: Optional[dict] = None
    ) -> VehicleIncident:
        error = first_error(
            required(data.description, "Description is required"),
            required(data.date, "Date is required"),
            validate_non_negative(data.cost, "Incident cost") if data.cost is not None else None,
        )
        if error:
            raise ValidationFailedError(error)

        vehicle = await VehicleService.get(db, vehicle_id)

        incident = VehicleIncident(
            vehicle_id=vehicle.id,
            date=data.date,
            description=data.description.strip(),
            cost=data.cost,
            status=IncidentStatus.OPEN,
        )
        db.add(incident)
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_INCIDENT_LOGGED, "vehicle", vehicle.id,
            {"incident_id": incident.id, "cost": data.cost}
        )
        logger.info("Incident %s logged for vehicle %s", incident.id, vehicle.vehicle_number)
        return incident

    @staticmethod
    async def list_incidents(db: AsyncSession, vehicle_id: int) -> List[VehicleIncident]:
        await VehicleService.get(db, vehicle_id)
        result = await db.execute(
            select(VehicleIncident)
            .where(VehicleIncident.vehicle_id == vehicle_id)
            .order_by(VehicleIncident.date.desc(), VehicleIncident.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def resolve_incident(
        db: AsyncSession,
        vehicle_id: int,
        incident_id: int,
        resolution: str,
        user: Optional[dict] = None
    ) -> VehicleIncident:
        """
        Close an OPEN incident with its resolution details.

        Raises:
            ValidationFailedError: Blank resolution
            PreconditionFailedError: Incident is already resolved
        """
        error = required(resolution, "Resolution details are required")
        if error:
            raise ValidationFailedError(error)

        result = await db.execute(
            select(VehicleIncident)
            .where(VehicleIncident.id == incident_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        incident = result.scalar_one_or_none()
        if not incident or incident.vehicle_id != vehicle_id:
            raise ResourceNotFoundError("Vehicle incident", incident_id)
        if incident.status == IncidentStatus.RESOLVED:
            raise PreconditionFailedError("Incident is already resolved", details={"incident_id": incident.id})

        incident.status = IncidentStatus.RESOLVED
        incident.resolution = resolution.strip()
        await db.flush()

        await log_user_action(
            db, user, AuditAction.VEHICLE_INCIDENT_RESOLVED, "vehicle", vehicle_id, {"incident_id": incident.id}
        )
        logger.info("Incident %s on vehicle %s resolved", incident.id, vehicle_id)
        return incident
