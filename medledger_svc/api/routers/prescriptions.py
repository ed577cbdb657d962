"""
Prescriptions router - dictated prescriptions shared between hospital and patient.

Hospitals create prescriptions from a dictation transcript; patients list
theirs by identifier and update the status as they read and complete them.
All endpoints require API key authentication.

Architecture:
    HTTP Request → Router (this file) → PrescriptionService → InMemoryPrescriptionStore
                                      → AnalyticsService (frequency strategy)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from core.auth import verify_api_key
from core.dependencies import get_analytics_service, get_prescription_service
from schemas import (
    AnalyticsResponse,
    ErrorResponse,
    PrescriptionCreate,
    PrescriptionListResponse,
    PrescriptionResponse,
    PrescriptionStatusUpdate,
    ReportResponse,
)
from services import AnalyticsService
from services.analytics import FrequencyStrategy
from services.prescription_service import PrescriptionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/prescriptions",
    tags=["Prescriptions"],
    dependencies=[Depends(verify_api_key)],  # Require API key for all endpoints
)

IDENTIFIER_QUERY = Query(
    None,
    pattern=r"^\d{12}$",
    description="Only prescriptions for this 12-digit identifier",
    example="100000000001",
)


@router.post(
    "",
    response_model=PrescriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a prescription",
    description="Store a prescription dictated by a doctor. New prescriptions have status 'new'.",
)
async def create_prescription(
    prescription: PrescriptionCreate,
    prescription_service: PrescriptionService = Depends(get_prescription_service)
) -> PrescriptionResponse:
    record = prescription_service.create_prescription(
        patient_identifier=prescription.patient_identifier,
        patient_name=prescription.patient_name,
        doctor_name=prescription.doctor_name,
        transcription=prescription.transcription,
        department=prescription.department,
        issued_at=prescription.issued_at,
        patient_id=prescription.patient_id,
        audio_data=prescription.audio_data,
    )
    return PrescriptionResponse.from_domain(record)


@router.get(
    "",
    response_model=PrescriptionListResponse,
    summary="List prescriptions",
    description="Newest first. Filter by patient identifier, or omit it to list all.",
)
async def list_prescriptions(
    patient_identifier: Optional[str] = IDENTIFIER_QUERY,
    prescription_service: PrescriptionService = Depends(get_prescription_service)
) -> PrescriptionListResponse:
    records = prescription_service.list_prescriptions(patient_identifier)
    return PrescriptionListResponse(prescriptions=[PrescriptionResponse.from_domain(r) for r in records])


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Prescription frequency analytics",
    description="Run the frequency strategy over stored prescriptions, optionally for one patient.",
)
async def analyze_prescriptions(
    patient_identifier: Optional[str] = IDENTIFIER_QUERY,
    prescription_service: PrescriptionService = Depends(get_prescription_service),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> AnalyticsResponse:
    metrics = prescription_service.as_metrics(patient_identifier)
    reports = analytics_service.analyze(metrics, FrequencyStrategy.name)
    return AnalyticsResponse(
        strategy=FrequencyStrategy.name,
        reports=[ReportResponse.from_domain(r) for r in reports],
    )


@router.put(
    "/{prescription_id}",
    response_model=PrescriptionResponse,
    summary="Update a prescription's status",
    responses={404: {"model": ErrorResponse, "description": "Unknown prescription id"}},
)
async def update_prescription_status(
    prescription_id: str,
    update: PrescriptionStatusUpdate,
    prescription_service: PrescriptionService = Depends(get_prescription_service)
) -> PrescriptionResponse:
    """
    Set the status to new, viewed or completed.

    Note: PrescriptionNotFoundError is raised by the service and handled
    by the exception handler registered in main.py.
    """
    record = prescription_service.update_status(prescription_id, update.status)
    return PrescriptionResponse.from_domain(record)
