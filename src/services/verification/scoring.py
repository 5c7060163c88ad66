"""Confidence scoring and outcome messages."""

from datetime import datetime, timezone

from src.config.constants import VERIFICATION_THRESHOLD, VerificationMessage
from src.services.verification.models import VerificationResult

NO_FACE_MESSAGE = VerificationMessage.NO_FACE.value
NO_PEOPLE_MESSAGE = VerificationMessage.NO_PEOPLE.value


def combine_confidence(first: float, second: float) -> float:
    """Average two detection confidences, kept inside [0, 1]."""
    score = (first + second) / 2.0
    return min(max(score, 0.0), 1.0)


def is_verified(score: float, threshold: float = VERIFICATION_THRESHOLD) -> bool:
    return score >= threshold


def format_message(score: float, threshold: float = VERIFICATION_THRESHOLD) -> str:
    if is_verified(score, threshold):
        return f"Identity verified successfully with {score:.2%} confidence"
    return (
        f"Identity verification failed. Confidence score {score:.2%} "
        f"is below threshold of {threshold:.2%}"
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def failed_result(message: str) -> VerificationResult:
    """A non-verified result with a zero score."""
    return VerificationResult(
        is_verified=False,
        confidence_score=0.0,
        message=message,
        attempt_date=utcnow(),
    )


def scored_result(score: float, threshold: float = VERIFICATION_THRESHOLD) -> VerificationResult:
    return VerificationResult(
        is_verified=is_verified(score, threshold),
        confidence_score=score,
        message=format_message(score, threshold),
        attempt_date=utcnow(),
    )


def error_result(error: BaseException) -> VerificationResult:
    return failed_result(f"Verification failed due to error: {error}")

