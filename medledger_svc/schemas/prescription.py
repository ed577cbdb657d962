"""
Pydantic schemas for dictated prescriptions.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from core.datetime_utils import MAX_EPOCH_SECONDS
from stores.prescription_store import PrescriptionRecord


class PrescriptionCreate(BaseModel):
    """Schema for creating a prescription from a dictation transcript.

    ``issued_at`` defaults to now. ``audio_data`` is accepted for clients that
    keep the recording but is never echoed back.
    """
    patient_identifier: str = Field(
        ...,
        pattern=r"^\d{12}$",
        description="12-digit national identifier of the patient",
        example="100000000001"
    )
    patient_name: str = Field(..., min_length=1, max_length=200, example="Asha Rao")
    doctor_name: str = Field(..., min_length=1, max_length=200, example="Dr. John Doe")
    transcription: str = Field(
        ...,
        min_length=1,
        description="Dictation transcript",
        example="Diagnosis: Type 2 diabetes, Metformin 500mg twice daily with meals"
    )
    department: Optional[str] = Field(None, max_length=200, description="Defaults to General Medicine")
    issued_at: Optional[int] = Field(None, ge=0, le=MAX_EPOCH_SECONDS, description="Epoch seconds")
    patient_id: Optional[str] = Field(None, description="Hospital-side patient id", example="P001")
    audio_data: Optional[str] = Field(None, description="Base64-encoded dictation audio")

    class Config:
        json_schema_extra = {
            "example": {
                "patient_identifier": "100000000001",
                "patient_name": "Asha Rao",
                "doctor_name": "Dr. John Doe",
                "transcription": "Diagnosis: Type 2 diabetes, Metformin 500mg twice daily with meals"
            }
        }


class PrescriptionStatusUpdate(BaseModel):
    status: Literal["new", "viewed", "completed"] = Field(..., example="viewed")


class PrescriptionResponse(BaseModel):
    """Schema for a stored prescription."""
    id: str = Field(..., example="VP3F9A0C21B7")
    patient_identifier: str
    patient_name: str
    patient_id: Optional[str] = None
    doctor_name: str
    department: str
    transcription: str
    issued_at: int = Field(..., description="Epoch seconds")
    status: str = Field(..., example="new")
    has_audio: bool = Field(False, description="Whether dictation audio was stored")

    @classmethod
    def from_domain(cls, record: PrescriptionRecord) -> "PrescriptionResponse":
        return cls(
            id=record.id,
            patient_identifier=record.patient_identifier,
            patient_name=record.patient_name,
            patient_id=record.patient_id,
            doctor_name=record.doctor_name,
            department=record.department,
            transcription=record.transcription,
            issued_at=record.issued_at,
            status=record.status.value,
            has_audio=record.audio_data is not None,
        )


class PrescriptionListResponse(BaseModel):
    prescriptions: List[PrescriptionResponse]
