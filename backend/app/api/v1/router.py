"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, admin, parties, vehicles, consignments, billing,
    settings, notifications, analytics
)

router = APIRouter()

# Include authentication endpoints
router.include_router(auth.router)

# Include admin endpoints
router.include_router(admin.router)

# Masters
router.include_router(parties.router)
router.include_router(vehicles.router)

# Bookings
router.include_router(consignments.router)

# Billing and payments
router.include_router(billing.router)
router.include_router(billing.vehicle_payments_router)

# Company profile and numbering
router.include_router(settings.router)

router.include_router(notifications.router)
router.include_router(analytics.router)
