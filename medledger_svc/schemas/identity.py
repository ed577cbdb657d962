"""
Pydantic schemas for DigiLocker identity verification.
"""
from typing import Optional

from pydantic import BaseModel, Field


class DigiLockerInitResponse(BaseModel):
    auth_url: str = Field(..., description="DigiLocker authorization URL to redirect the user to")
    state: str = Field(..., description="Opaque state echoed back on the callback")


class VerifiedIdentityResponse(BaseModel):
    """Identity attributes confirmed by DigiLocker. The identifier is masked."""
    name: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    masked_identifier: str = Field(..., example="********9012")
    verified: bool = True
