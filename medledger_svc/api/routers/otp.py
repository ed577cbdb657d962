"""
OTP router - one-time passcode issuance and verification.

A single endpoint serves both actions so clients post the same shape for
send and verify. All endpoints require API key authentication.

Architecture:
    HTTP Request → Router (this file) → OtpService → OtpStore

Error bodies carry ``detail`` and a machine-readable ``error`` kind so the
client can choose between prompting for re-entry and requesting a new code.
The generated code and attempt counters never appear in a response.
"""
import logging

from fastapi import APIRouter, Depends

from core.auth import verify_api_key
from core.dependencies import get_otp_service
from schemas import ErrorResponse, OtpRequest, OtpResponse
from services import OtpService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/otp",
    tags=["OTP"],
    dependencies=[Depends(verify_api_key)],  # Require API key for all endpoints
)


@router.post(
    "",
    response_model=OtpResponse,
    response_model_exclude_none=True,
    summary="Send or verify an OTP",
    description="With action=send, issue a code to the phone registered for the identifier. "
                "With action=verify, check the submitted code. Unregistered identifiers "
                "succeed without a code (issued=false).",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed input, wrong or expired code"},
        404: {"model": ErrorResponse, "description": "No outstanding code"},
        429: {"model": ErrorResponse, "description": "Too many attempts"},
    },
)
def handle_otp(
    request: OtpRequest,
    otp_service: OtpService = Depends(get_otp_service)
) -> OtpResponse:
    """
    Send or verify a one-time passcode.

    - **identifier**: 12-digit national identifier
    - **code**: 6-digit code (verify only)
    - **action**: "send" or "verify"

    Note: OTP errors are raised by the service and handled by the exception
    handler registered in main.py.
    """
    if request.action == "send":
        result = otp_service.request_code(request.identifier)
        return OtpResponse(success=True, issued=result.issued)

    otp_service.verify_code(request.identifier, request.code)
    return OtpResponse(success=True)
