"""
API key check shared by the MedLedger routers.

Every router that touches patient data (otp, analytics, prescriptions,
advisor, identity) is declared with ``dependencies=[Depends(verify_api_key)]``.
The health and meta routers stay public.

The web frontend's server side holds MEDLEDGER_API_KEY and sends it in the
``X-API-Key`` header; browsers never see it.
"""
import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from core.config import API_KEY

logger = logging.getLogger(__name__)

API_KEY_HEADER_NAME = "X-API-Key"

# auto_error=False so a missing header is a 401 and a wrong key a 403
api_key_header = APIKeyHeader(
    name=API_KEY_HEADER_NAME,
    auto_error=False,
    description="MedLedger service key, sent in the X-API-Key header.",
)


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> str:
    """
    Reject requests without the configured service key.

    The comparison is constant-time. Neither the submitted nor the expected
    key is logged.

    Raises:
        HTTPException: 401 when the header is absent, 403 when it does not match.
    """
    if api_key is None:
        logger.warning("Rejected request without X-API-Key header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Include it in the X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(api_key.encode(), API_KEY.encode()):
        logger.warning("Rejected request with a wrong API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key
