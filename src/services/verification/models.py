"""Verification service models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from src.config.constants import MAX_PATH_LENGTH


def _as_utc(value: datetime) -> datetime:
    """Stored dates are naive UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass
class VerificationResult:
    """Outcome of comparing a document photo with a selfie."""

    is_verified: bool
    confidence_score: float
    message: str
    attempt_date: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "is_verified": self.is_verified,
            "confidence_score": self.confidence_score,
            "message": self.message,
            "attempt_date": self.attempt_date.isoformat(),
        }


@dataclass
class VerificationAttempt:
    """A persisted verification request."""

    document_path: str
    selfie_path: str
    is_verified: bool
    confidence_score: float
    attempt_date: datetime
    id: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("document_path", "selfie_path"):
            value = getattr(self, name)
            if not value or not value.strip():
                raise ValueError(f"{name} is required")
            if len(value) > MAX_PATH_LENGTH:
                raise ValueError(f"{name} exceeds {MAX_PATH_LENGTH} characters")
        if not 0.0 <= self.confidence_score <= 1.0:
            raise ValueError(f"confidence_score must be in [0, 1], got {self.confidence_score}")
        if self.attempt_date is None:
            raise ValueError("attempt_date is required")

    @classmethod
    def from_result(
        cls, result: VerificationResult, document_path: str, selfie_path: str
    ) -> "VerificationAttempt":
        return cls(
            document_path=document_path,
            selfie_path=selfie_path,
            is_verified=result.is_verified,
            confidence_score=result.confidence_score,
            attempt_date=result.attempt_date,
        )

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "VerificationAttempt":
        return cls(
            id=int(row["Id"]),
            document_path=row["DocumentPath"],
            selfie_path=row["SelfiePath"],
            is_verified=bool(row["IsVerified"]),
            confidence_score=float(row["ConfidenceScore"]),
            attempt_date=_as_utc(row["AttemptDate"]),
        )


@dataclass
class VerificationOutcome:
    """Result of the full workflow: evaluation plus the stored attempt."""

    result: VerificationResult
    attempt: VerificationAttempt


# Analysis outcomes. Expected absences are values, not exceptions.


@dataclass(frozen=True)
class Detected:
    people_confidences: list[float] = field(default_factory=list)

    @property
    def top_confidence(self) -> float:
        return max(self.people_confidences)


@dataclass(frozen=True)
class NotDetected:
    pass


@dataclass(frozen=True)
class TransportFault:
    cause: BaseException


DetectionOutcome = Union[Detected, NotDetected, TransportFault]
