"""Request/Response models for API endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.config.constants import MAX_DATA_URL_LENGTH
from src.services.verification.models import VerificationAttempt, VerificationOutcome


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")


class CaptureRequest(BaseModel):
    """Images captured in the browser, as base64 data URLs."""

    document_image: str = Field(
        ..., min_length=1, max_length=MAX_DATA_URL_LENGTH, description="Document photo data URL"
    )
    selfie_image: str = Field(
        ..., min_length=1, max_length=MAX_DATA_URL_LENGTH, description="Selfie data URL"
    )


class Attempt(BaseModel):
    """A stored verification attempt."""

    id: int
    document_path: str
    selfie_path: str
    is_verified: bool
    confidence_score: float
    attempt_date: datetime

    @classmethod
    def from_attempt(cls, attempt: VerificationAttempt) -> "Attempt":
        return cls(
            id=attempt.id,
            document_path=attempt.document_path,
            selfie_path=attempt.selfie_path,
            is_verified=attempt.is_verified,
            confidence_score=attempt.confidence_score,
            attempt_date=attempt.attempt_date,
        )


class VerificationResponse(BaseModel):
    """Outcome of a verification request."""

    is_verified: bool = Field(..., description="True if the confidence score met the threshold")
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    message: str = Field(..., description="Human readable outcome")
    attempt_date: datetime
    attempt_id: Optional[int] = Field(None, description="Identifier of the stored attempt")
    document_path: Optional[str] = None
    selfie_path: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: VerificationOutcome) -> "VerificationResponse":
        return cls(
            is_verified=outcome.result.is_verified,
            confidence_score=outcome.result.confidence_score,
            message=outcome.result.message,
            attempt_date=outcome.result.attempt_date,
            attempt_id=outcome.attempt.id,
            document_path=outcome.attempt.document_path,
            selfie_path=outcome.attempt.selfie_path,
        )
