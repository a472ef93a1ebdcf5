"""
Party API Endpoints.

Companies, agents and vehicle owners, and their ledgers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, WRITE_ROLES
from backend.app.core.reliability import run_in_transaction
from backend.app.db.session import get_db
from backend.app.models.enums import PartyType
from backend.app.schemas.party import PartyCreate, PartyUpdate, PartyActiveUpdate, PartyResponse, LedgerStatement
from backend.app.services.party_service import PartyService

router = APIRouter(prefix="/parties", tags=["Parties"])


@router.get("", response_model=List[PartyResponse])
async def list_parties(
    type: Optional[PartyType] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    include_inactive: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await PartyService.list_parties(db, type, search, active_only=not include_inactive)


@router.post("", response_model=PartyResponse, status_code=status.HTTP_201_CREATED)
async def create_party(
    party_data: PartyCreate,
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    party = await run_in_transaction(db, PartyService.create, party_data, current_user)
    await db.refresh(party)
    return party


@router.get("/{party_id}", response_model=PartyResponse)
async def get_party(
    party_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await PartyService.get(db, party_id)


@router.patch("/{party_id}", response_model=PartyResponse)
async def update_party(
    party_data: PartyUpdate,
    party_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    party = await run_in_transaction(db, PartyService.update, party_id, party_data, current_user)
    await db.refresh(party)
    return party


@router.patch("/{party_id}/active", response_model=PartyResponse)
async def set_party_active(
    req: PartyActiveUpdate,
    party_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Activate or deactivate a party. Inactive parties are hidden from the default list."""
    party = await run_in_transaction(db, PartyService.set_active, party_id, req.is_active, current_user)
    await db.refresh(party)
    return party


@router.delete("/{party_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_party(
    party_id: int = Path(...),
    current_user: dict = Depends(require_role(WRITE_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a party that nothing references yet.

    Parties with consignments, bills, vehicles or vehicle payments must be
    deactivated instead (409).
    """
    await run_in_transaction(db, PartyService.delete, party_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{party_id}/ledger", response_model=LedgerStatement)
async def get_party_ledger(
    party_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Ledger entries with running balance (debit - credit)."""
    return await PartyService.ledger_statement(db, party_id)
