"""
Settings API Endpoints.

Company profile and document numbering (OWNER / MANAGER only for writes).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_admin
from backend.app.core.reliability import run_in_transaction
from backend.app.db.session import get_db
from backend.app.schemas.settings import CompanySettingsUpdate, NumberingSettingsUpdate, SettingsResponse
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


async def _save(db: AsyncSession, saver, values: dict, section: str, current_user: dict) -> dict:
    saved = await saver(db, values)
    await log_user_action(
        db, current_user, AuditAction.SETTINGS_UPDATED, "settings", None,
        {"section": section, "values": saved}
    )
    return saved


@router.get("", response_model=SettingsResponse)
async def get_settings(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return SettingsResponse(settings=await SettingsService.get_all(db))


@router.put("/company", response_model=SettingsResponse)
async def save_company_settings(
    req: CompanySettingsUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await run_in_transaction(
        db, _save, SettingsService.save_company, req.model_dump(exclude_none=True), "company", current_user
    )
    return SettingsResponse(settings=await SettingsService.get_all(db))


@router.put("/numbering", response_model=SettingsResponse)
async def save_numbering_settings(
    req: NumberingSettingsUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Change prefixes / series, or reset a counter.

    Changing the invoice series does not reset the invoice counter.
    """
    await run_in_transaction(
        db, _save, SettingsService.save_numbering, req.model_dump(exclude_none=True), "numbering", current_user
    )
    return SettingsResponse(settings=await SettingsService.get_all(db))
