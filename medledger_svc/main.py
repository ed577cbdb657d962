"""
FastAPI application entry point for the MedLedger Service API.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging for Grafana/Loki
- Request ID Propagation: UUID-based request tracking across logs
- Dependency Injection: Services and stores injected via Depends()
- Exception Handling: Consistent error responses via setup_exception_handlers()
- CORS Middleware: Allows cross-origin requests from the web frontend
- Lifespan Management: OTP store and registry initialization
- Metrics Collection: In-memory metrics for Prometheus/Grafana scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack (order matters!)                          │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py     - /health, /ready, /metrics endpoints  │
    │    ├── otp.py        - OTP send / verify                    │
    │    ├── analytics.py  - Metric analytics heuristics          │
    │    ├── advisor.py    - Gemini health advisor                │
    │    ├── identity.py   - DigiLocker verification              │
    │    ├── prescriptions.py - Dictated prescriptions            │
    │    └── meta.py       - Threshold metadata                   │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    │    ├── OtpService         - OTP gate                        │
    │    ├── AnalyticsService   - Value / frequency strategies    │
    │    ├── AdvisorService     - Gemini prompts & fallbacks      │
    │    ├── DigiLockerService  - OAuth2 code exchange            │
    │    └── PrescriptionService - Prescription store             │
    ├─────────────────────────────────────────────────────────────┤
    │  Stores (stores/)               ← Injected into OtpService  │
    │    ├── InMemoryOtpStore | RedisOtpStore                     │
    │    └── InMemoryPrescriptionStore                            │
    └─────────────────────────────────────────────────────────────┘

Observability Features:
    - Structured JSON logs for Grafana Loki
    - Request ID in logs and X-Request-ID response header
    - /health endpoint for liveness probes
    - /ready endpoint for readiness probes (checks OTP store, Redis broker)
    - /metrics endpoint for Prometheus scraping
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from core.config import API_HOST, API_PORT, API_RELOAD, settings
from core.dependencies import get_identifier_registry, get_otp_store
from core.exceptions import setup_exception_handlers
from core.logging_config import setup_logging
from core.middleware import LoggingMiddleware
from api.routers import (
    health_router,
    otp_router,
    analytics_router,
    advisor_router,
    identity_router,
    meta_router,
    prescriptions_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application.

    Startup:
        - Configures structured JSON logging
        - Initializes the OTP store and loads the identifier registry
          so configuration errors surface before the first request

    Shutdown:
        - Logs shutdown message
    """
    # =========================================================================
    # STARTUP
    # =========================================================================

    # Configure structured logging FIRST (before any other logging)
    setup_logging(level="INFO", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Starting MedLedger Service API...")

    get_otp_store()
    registry = get_identifier_registry()
    logger.info(
        "OTP gate initialized",
        extra={"otp_store": settings.medledger_otp_store, "registered_identifiers": len(registry)}
    )

    yield  # Application runs here

    # =========================================================================
    # SHUTDOWN
    # =========================================================================
    logger.info("MedLedger Service API shutting down...")


# Create FastAPI app with lifespan context
app = FastAPI(
    title="MedLedger Service API",
    description="Backend for the MedLedger healthcare record application: OTP verification for "
                "identifier-based registration, health metric analytics, a Gemini-backed health "
                "advisor and DigiLocker identity verification.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
# MedLedgerError and its subclasses are converted to {"detail", "error"} responses.
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Order matters! Middleware is executed in REVERSE order of registration.
# Last registered = first to handle request, last to handle response.

# 1. CORS Middleware (innermost - closest to routes)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins like ["http://localhost:3000"]
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Logging Middleware (outermost - captures all requests)
# Generates request_id, logs requests, collects metrics
app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(otp_router)
app.include_router(analytics_router)
app.include_router(advisor_router)
app.include_router(identity_router)
app.include_router(meta_router)
app.include_router(prescriptions_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
