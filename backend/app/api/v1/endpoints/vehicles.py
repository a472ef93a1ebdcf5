"""
Vehicle API Endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, WRITE_ROLES
from backend.app.core.reliability import run_in_transaction
from backend.app.db.session import get_db
from backend.app.models.enums import VehicleStatus
from backend.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleStatusUpdate, VehicleResponse, VehicleListResponse,
    VehicleDocumentCreate, VehicleDocumentResponse, VehicleIncidentCreate, IncidentResolve,
    VehicleIncidentResponse
)
from backend.app.services.vehicle_service import VehicleService

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    owner_id: Optional[int] = Query(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicles = await VehicleService.list_vehicles(db, status_filter, owner_id)
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles)
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await run_in_transaction(db, VehicleService.create, vehicle_data, current_user)
    await db.refresh(vehicle)
    return vehicle


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await VehicleService.get(db, vehicle_id)


@router.patch("/{vehicle_id}/status", response_model=VehicleResponse)
async def update_vehicle_status(
    req: VehicleStatusUpdate,
    vehicle_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Send a vehicle to repair, retire it, or bring it back to AVAILABLE."""
    vehicle = await run_in_transaction(db, VehicleService.set_status, vehicle_id, req.status, current_user)
    await db.refresh(vehicle)
    return vehicle


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Edit number, type, capacity, owner or notes."""
    vehicle = await run_in_transaction(db, VehicleService.update, vehicle_id, vehicle_data, current_user)
    await db.refresh(vehicle)
    return vehicle


@router.get("/{vehicle_id}/documents", response_model=List[VehicleDocumentResponse])
async def list_vehicle_documents(
    vehicle_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await VehicleService.list_documents(db, vehicle_id)


@router.post("/{vehicle_id}/documents", response_model=VehicleDocumentResponse, status_code=status.HTTP_201_CREATED)
async def add_vehicle_document(
    document_data: VehicleDocumentCreate,
    vehicle_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Record a document (RC, insurance, permit...) with its number and validity."""
    document = await run_in_transaction(db, VehicleService.add_document, vehicle_id, document_data, current_user)
    await db.refresh(document)
    return document


@router.delete("/{vehicle_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle_document(
    vehicle_id: int = Path(...),
    document_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    await run_in_transaction(db, VehicleService.delete_document, vehicle_id, document_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{vehicle_id}/incidents", response_model=List[VehicleIncidentResponse])
async def list_vehicle_incidents(
    vehicle_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await VehicleService.list_incidents(db, vehicle_id)


@router.post("/{vehicle_id}/incidents", response_model=VehicleIncidentResponse, status_code=status.HTTP_201_CREATED)
async def log_vehicle_incident(
    incident_data: VehicleIncidentCreate,
    vehicle_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    incident = await run_in_transaction(db, VehicleService.log_incident, vehicle_id, incident_data, current_user)
    await db.refresh(incident)
    return incident


@router.post("/{vehicle_id}/incidents/{incident_id}/resolve", response_model=VehicleIncidentResponse)
async def resolve_vehicle_incident(
    req: IncidentResolve,
    vehicle_id: int = Path(...),
    incident_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    incident = await run_in_transaction(
        db, VehicleService.resolve_incident, vehicle_id, incident_id, req.resolution, current_user
    )
    await db.refresh(incident)
    return incident
