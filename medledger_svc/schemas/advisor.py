"""
Pydantic schemas for the health advisor.
"""
from typing import Any, Dict

from pydantic import BaseModel, Field


class AdviceRequest(BaseModel):
    """Schema for a free-text health question."""
    message: str = Field(..., description="User question", example="How can I lower my blood pressure?")


class AdviceResponse(BaseModel):
    output: str = Field(..., description="Advisor reply")


class SymptomRequest(BaseModel):
    """Schema for a symptom description."""
    symptoms: str = Field(..., description="Free-text symptom description", example="Headache and mild fever for two days")


class SymptomAnalysisResponse(BaseModel):
    """Structured analysis as returned by the model; shape varies with model output."""
    analysis: Dict[str, Any]


class ImageAnalysisResponse(BaseModel):
    analysis: str
    image_processed: bool
    disclaimer: str
