"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from api.routers.health import router as health_router
from api.routers.otp import router as otp_router
from api.routers.analytics import router as analytics_router
from api.routers.advisor import router as advisor_router
from api.routers.identity import router as identity_router
from api.routers.meta import router as meta_router
from api.routers.prescriptions import router as prescriptions_router

__all__ = [
    "health_router",
    "otp_router",
    "analytics_router",
    "advisor_router",
    "identity_router",
    "meta_router",
    "prescriptions_router",
]
