"""
Reports API Endpoints.

Read-only dashboard and booking report data for all roles.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.services.analytics import AnalyticsService
from backend.app.schemas.analytics import DashboardStats, ReportSummary

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active consignments, receivables and this month's bookings."""
    return await AnalyticsService.get_dashboard(db)


@router.get("/summary", response_model=ReportSummary)
async def get_report(
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Revenue by month, top consignors and routes, and status, payment-type
    and freight-type breakdowns. Defaults to the last six months.
    """
    return await AnalyticsService.get_report(db, from_date, to_date)
