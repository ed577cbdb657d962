"""
Pydantic schemas for the OTP gate.

Format rules for identifiers and codes are enforced by the service layer.
Bodies that fail this schema (unknown action, non-string identifier) are
answered as 400 validation_error by the handler in core/exceptions.py.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field


class OtpRequest(BaseModel):
    """Schema for an OTP send or verify request."""
    identifier: str = Field(..., description="12-digit national identifier", example="100000000001")
    code: Optional[str] = Field(None, description="6-digit code (verify only)", example="123456")
    action: Literal["send", "verify"] = Field(..., description="Operation to perform", example="send")

    class Config:
        json_schema_extra = {
            "example": {
                "identifier": "100000000001",
                "action": "send"
            }
        }


class OtpResponse(BaseModel):
    """Schema for a successful OTP operation.

    ``issued`` is only present for ``send``; it is false when the identifier
    is not registered and no code was generated.
    """
    success: bool = Field(True, description="Operation succeeded", example=True)
    issued: Optional[bool] = Field(None, description="Whether a code was generated (send only)", example=True)

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "issued": True
            }
        }


class ErrorResponse(BaseModel):
    """Schema for error bodies returned by all MedLedger endpoints."""
    detail: str = Field(..., description="Human-readable message", example="OTP expired. Please request a new one.")
    error: str = Field(..., description="Machine-readable error kind", example="expired")
