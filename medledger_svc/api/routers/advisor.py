"""
Advisor router - Gemini-backed health advice.

All endpoints require API key authentication. Provider failures never
surface as errors: the service returns a canned fallback instead. A missing
GEMINI_API_KEY yields 503 from the dependency.

Architecture:
    HTTP Request → Router (this file) → AdvisorService → Google Gemini
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from core.auth import verify_api_key
from core.config import settings
from core.dependencies import get_advisor_service
from core.exceptions import InvalidRequestError
from schemas import (
    AdviceRequest,
    AdviceResponse,
    ErrorResponse,
    ImageAnalysisResponse,
    SymptomAnalysisResponse,
    SymptomRequest,
)
from services.advisor_service import AdvisorService
from services.validators import read_validated_image

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/advisor",
    tags=["Health Advisor"],
    dependencies=[Depends(verify_api_key)],  # Require API key for all endpoints
    responses={503: {"model": ErrorResponse, "description": "Advisor not configured"}},
)


@router.post(
    "/chat",
    response_model=AdviceResponse,
    summary="Ask the health advisor",
    description="General health information only; the advisor does not diagnose or prescribe."
)
def chat(
    request: AdviceRequest,
    advisor: AdvisorService = Depends(get_advisor_service)
) -> AdviceResponse:
    if not request.message.strip():
        raise InvalidRequestError("Message is required")
    return AdviceResponse(output=advisor.advise(request.message))


@router.post(
    "/symptoms",
    response_model=SymptomAnalysisResponse,
    summary="Analyze symptoms",
    description="Returns possible conditions, severity, recommended actions and a disclaimer."
)
def analyze_symptoms(
    request: SymptomRequest,
    advisor: AdvisorService = Depends(get_advisor_service)
) -> SymptomAnalysisResponse:
    if not request.symptoms.strip():
        raise InvalidRequestError("Symptoms description is required")
    return SymptomAnalysisResponse(analysis=advisor.analyze_symptoms(request.symptoms))


@router.post(
    "/image",
    response_model=ImageAnalysisResponse,
    summary="Analyze a medical image",
    description="Upload a JPEG, PNG, GIF or BMP image with an optional description."
)
async def analyze_image(
    image: UploadFile = File(..., description="Medical image"),
    description: Optional[str] = Form(None, description="Patient's description of the condition"),
    advisor: AdvisorService = Depends(get_advisor_service)
) -> ImageAnalysisResponse:
    """
    Analyze an uploaded image.

    Raises 415 for unsupported types and 413 when the file exceeds
    MEDLEDGER_UPLOAD_MAX_SIZE.
    """
    content = await read_validated_image(image, settings.medledger_upload_max_size)
    logger.info("Analyzing medical image", extra={"size_bytes": len(content), "content_type": image.content_type})
    result = await run_in_threadpool(advisor.analyze_image, content, description)
    return ImageAnalysisResponse(**result)
