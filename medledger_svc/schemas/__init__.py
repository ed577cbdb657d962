"""
Pydantic schemas for API request/response validation.

This module contains all Pydantic models used at API boundaries.
"""
from schemas.otp import OtpRequest, OtpResponse, ErrorResponse
from schemas.analytics import (
    HealthMetricIn,
    AnalyticsRequest,
    AnalyticsResponse,
    ReportResponse,
)
from schemas.advisor import (
    AdviceRequest,
    AdviceResponse,
    SymptomRequest,
    SymptomAnalysisResponse,
    ImageAnalysisResponse,
)
from schemas.identity import DigiLockerInitResponse, VerifiedIdentityResponse
from schemas.prescription import (
    PrescriptionCreate,
    PrescriptionStatusUpdate,
    PrescriptionResponse,
    PrescriptionListResponse,
)

__all__ = [
    # OTP schemas
    "OtpRequest",
    "OtpResponse",
    "ErrorResponse",
    # Analytics schemas
    "HealthMetricIn",
    "AnalyticsRequest",
    "AnalyticsResponse",
    "ReportResponse",
    # Advisor schemas
    "AdviceRequest",
    "AdviceResponse",
    "SymptomRequest",
    "SymptomAnalysisResponse",
    "ImageAnalysisResponse",
    # Identity schemas
    "DigiLockerInitResponse",
    "VerifiedIdentityResponse",
    # Prescription schemas
    "PrescriptionCreate",
    "PrescriptionStatusUpdate",
    "PrescriptionResponse",
    "PrescriptionListResponse",
]
