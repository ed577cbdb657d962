"""
Identity router - DigiLocker OAuth2 verification.

All endpoints require API key authentication. Missing DigiLocker
credentials yield 503 from the dependency.
"""
import logging

from fastapi import APIRouter, Depends, Query

from core.auth import verify_api_key
from core.dependencies import get_digilocker_service
from schemas import DigiLockerInitResponse, ErrorResponse, VerifiedIdentityResponse
from services.digilocker_service import DigiLockerService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/identity",
    tags=["Identity"],
    dependencies=[Depends(verify_api_key)],  # Require API key for all endpoints
)


@router.get(
    "/digilocker/init",
    response_model=DigiLockerInitResponse,
    summary="Start DigiLocker verification",
    description="Returns the DigiLocker authorization URL and the state to expect on the callback."
)
async def digilocker_init(
    digilocker: DigiLockerService = Depends(get_digilocker_service)
) -> DigiLockerInitResponse:
    state = digilocker.issue_state()
    return DigiLockerInitResponse(auth_url=digilocker.build_authorization_url(state), state=state)


@router.get(
    "/digilocker/callback",
    response_model=VerifiedIdentityResponse,
    summary="Complete DigiLocker verification",
    description="Exchanges the authorization code for the user's verified identity.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing code or unknown state"},
        502: {"model": ErrorResponse, "description": "DigiLocker exchange failed"},
    },
)
async def digilocker_callback(
    code: str = Query("", description="Authorization code"),
    state: str = Query("", description="State returned by /digilocker/init"),
    digilocker: DigiLockerService = Depends(get_digilocker_service)
) -> VerifiedIdentityResponse:
    identity = await digilocker.exchange_code(code, state)
    return VerifiedIdentityResponse(
        name=identity.name,
        dob=identity.dob,
        gender=identity.gender,
        masked_identifier=identity.masked_identifier,
        verified=identity.verified,
    )
