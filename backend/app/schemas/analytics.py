"""
Report Schemas.
"""

from pydantic import BaseModel
from datetime import date
from typing import Dict, List


class DashboardStats(BaseModel):
    """Office dashboard figures."""
    active_consignments: int
    consignments_by_status: Dict[str, int]
    outstanding_receivables: float
    overdue_bills: int
    month_freight: float
    month_bookings: int
    vehicles_available: int
    vehicles_on_trip: int


class ReportPeriod(BaseModel):
    from_date: date
    to_date: date


class MonthlyRevenue(BaseModel):
    month: str
    revenue: float
    count: int


class TopConsignor(BaseModel):
    party_id: int
    name: str
    trips: int
    revenue: float


class TopRoute(BaseModel):
    route: str
    count: int
    revenue: float


class StatusCount(BaseModel):
    status: str
    count: int


class TypeBreakdown(BaseModel):
    type: str
    count: int
    revenue: float


class ReportSummary(BaseModel):
    """
    Booking report over a date range.

    Cancelled consignments only appear in the status breakdown.
    """
    period: ReportPeriod
    revenue_by_month: List[MonthlyRevenue]
    top_consignors: List[TopConsignor]
    top_routes: List[TopRoute]
    status_breakdown: List[StatusCount]
    payment_breakdown: List[TypeBreakdown]
    freight_type_breakdown: List[TypeBreakdown]
