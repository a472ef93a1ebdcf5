"""
Analytics Service.

Handles data aggregation for the office dashboard and booking reports.
Focused on READ-ONLY operations.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, extract

from backend.app.core.exceptions import ValidationFailedError
from backend.app.domain.billing.tax_calculator import round2
from backend.app.models.bill import Bill
from backend.app.models.billing_enums import BillStatus
from backend.app.models.consignment import Consignment
from backend.app.models.consignment_enums import ConsignmentStatus
from backend.app.models.enums import VehicleStatus
from backend.app.models.party import Party
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.analytics import (
    DashboardStats, ReportSummary, ReportPeriod, MonthlyRevenue, TopConsignor,
    TopRoute, StatusCount, TypeBreakdown
)

ACTIVE_STATUSES = (ConsignmentStatus.BOOKED, ConsignmentStatus.IN_TRANSIT)
OPEN_BILL_STATUSES = (BillStatus.GENERATED, BillStatus.SENT, BillStatus.PARTIALLY_PAID)
REPORT_MONTHS = 6
TOP_N = 5


class AnalyticsService:

    @staticmethod
    async def get_dashboard(db: AsyncSession, today: Optional[date] = None) -> DashboardStats:
        """Get headline figures for the dashboard."""
        today = today or date.today()
        month_start = today.replace(day=1)

        # 1. Consignments by status (cancelled excluded)
        rows = (await db.execute(
            select(Consignment.status, func.count(Consignment.id))
            .where(Consignment.status != ConsignmentStatus.CANCELLED)
            .group_by(Consignment.status)
        )).all()
        by_status = {status.value: count for status, count in rows}
        active = sum(by_status.get(status.value, 0) for status in ACTIVE_STATUSES)

        # 2. Outstanding receivables over open bills
        total, paid = (await db.execute(
            select(func.coalesce(func.sum(Bill.total_amount), 0.0), func.coalesce(func.sum(Bill.paid_amount), 0.0))
            .where(Bill.status.in_(OPEN_BILL_STATUSES))
        )).one()

        overdue = (await db.execute(
            select(func.count(Bill.id)).where(
                Bill.status.in_(OPEN_BILL_STATUSES),
                Bill.due_date.is_not(None),
                Bill.due_date < today,
            )
        )).scalar_one()

        # 3. This month's bookings
        month_freight, month_bookings = (await db.execute(
            select(func.coalesce(func.sum(Consignment.freight_amount), 0.0), func.count(Consignment.id))
            .where(
                Consignment.booking_date >= month_start,
                Consignment.status != ConsignmentStatus.CANCELLED,
            )
        )).one()

        # 4. Fleet
        fleet = dict((await db.execute(
            select(Vehicle.status, func.count(Vehicle.id)).group_by(Vehicle.status)
        )).all())

        return DashboardStats(
            active_consignments=active,
            consignments_by_status=by_status,
            outstanding_receivables=round2(total - paid),
            overdue_bills=overdue,
            month_freight=round2(month_freight),
            month_bookings=month_bookings,
            vehicles_available=fleet.get(VehicleStatus.AVAILABLE, 0),
            vehicles_on_trip=fleet.get(VehicleStatus.ON_TRIP, 0),
        )

    @staticmethod
    def default_report_start(today: date) -> date:
        """First day of the month REPORT_MONTHS - 1 months before today."""
        months = today.year * 12 + today.month - 1 - (REPORT_MONTHS - 1)
        return date(months // 12, months % 12 + 1, 1)

    @staticmethod
    async def _type_breakdown(db: AsyncSession, column, filters: list) -> List[TypeBreakdown]:
        rows = (await db.execute(
            select(column, func.count(Consignment.id), func.coalesce(func.sum(Consignment.freight_amount), 0.0))
            .where(*filters)
            .group_by(column)
            .order_by(column)
        )).all()
        return [
            TypeBreakdown(type=value.value, count=count, revenue=round2(revenue))
            for value, count, revenue in rows
        ]

    @staticmethod
    async def get_report(
        db: AsyncSession,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        today: Optional[date] = None
    ) -> ReportSummary:
        """
        Booking report over an inclusive date range.

        Defaults to the current month and the five before it. Cancelled
        consignments are left out of every figure except the status breakdown.

        Raises:
            ValidationFailedError: If the range is reversed
        """
        today = today or date.today()
        to_date = to_date or today
        from_date = from_date or AnalyticsService.default_report_start(today)
        if from_date > to_date:
            raise ValidationFailedError("From date cannot be after to date")

        in_period = [Consignment.booking_date >= from_date, Consignment.booking_date <= to_date]
        billable = in_period + [Consignment.status != ConsignmentStatus.CANCELLED]
        freight = func.coalesce(func.sum(Consignment.freight_amount), 0.0)

        # 1. Revenue by month
        year_col = extract("year", Consignment.booking_date)
        month_col = extract("month", Consignment.booking_date)
        rows = (await db.execute(
            select(year_col, month_col, freight, func.count(Consignment.id))
            .where(*billable)
            .group_by(year_col, month_col)
            .order_by(year_col, month_col)
        )).all()
        revenue_by_month = [
            MonthlyRevenue(
                month=date(int(year), int(month), 1).strftime("%b %Y"),
                revenue=round2(revenue),
                count=count
            )
            for year, month, revenue, count in rows
        ]

        # 2. Top consignors by freight
        consignor_freight = freight.label("revenue")
        rows = (await db.execute(
            select(Party.id, Party.name, func.count(Consignment.id), consignor_freight)
            .join(Party, Party.id == Consignment.consignor_id)
            .where(*billable)
            .group_by(Party.id, Party.name)
            .order_by(consignor_freight.desc(), Party.name)
            .limit(TOP_N)
        )).all()
        top_consignors = [
            TopConsignor(party_id=party_id, name=name, trips=trips, revenue=round2(revenue))
            for party_id, name, trips, revenue in rows
        ]

        # 3. Top routes by bookings
        trips = func.count(Consignment.id).label("trips")
        rows = (await db.execute(
            select(Consignment.from_city, Consignment.to_city, trips, freight)
            .where(*billable)
            .group_by(Consignment.from_city, Consignment.to_city)
            .order_by(trips.desc(), Consignment.from_city, Consignment.to_city)
            .limit(TOP_N)
        )).all()
        top_routes = [
            TopRoute(route=f"{from_city} → {to_city}", count=count, revenue=round2(revenue))
            for from_city, to_city, count, revenue in rows
        ]

        # 4. Status breakdown (cancelled included)
        rows = (await db.execute(
            select(Consignment.status, func.count(Consignment.id))
            .where(*in_period)
            .group_by(Consignment.status)
            .order_by(Consignment.status)
        )).all()
        status_breakdown = [StatusCount(status=status.value, count=count) for status, count in rows]

        return ReportSummary(
            period=ReportPeriod(from_date=from_date, to_date=to_date),
            revenue_by_month=revenue_by_month,
            top_consignors=top_consignors,
            top_routes=top_routes,
            status_breakdown=status_breakdown,
            payment_breakdown=await AnalyticsService._type_breakdown(db, Consignment.payment_type, billable),
            freight_type_breakdown=await AnalyticsService._type_breakdown(db, Consignment.freight_type, billable),
        )
