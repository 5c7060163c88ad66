"""Tests for the identity verification service."""

import asyncio
import io
from datetime import datetime, timezone

import pytest
from azure.core.exceptions import HttpResponseError

from src.config.constants import ImageKind
from src.infrastructure.vision.client import Detection
from src.services.verification.models import VerificationAttempt, VerificationResult
from src.services.verification.service import IdentityVerificationService

DOC = b"document-image"
SELFIE = b"selfie-image"


def _by_image(mapping):
    def _detect(data):
        return mapping[data]

    return _detect


@pytest.fixture
def service(settings, vision, storage, repository):
    return IdentityVerificationService(settings, vision, storage, repository)


def _streams():
    doc, selfie = io.BytesIO(DOC), io.BytesIO(SELFIE)
    # Leave the streams at EOF so the service has to rewind them
    doc.read()
    selfie.read()
    return doc, selfie


# ==========================================
#  verify_identity
# ==========================================


@pytest.mark.asyncio
async def test_verify_identity_averages_confidences(service, vision):
    vision.detect.side_effect = _by_image({
        DOC: Detection(detected=True, people_confidences=[0.9]),
        SELFIE: Detection(detected=True, people_confidences=[0.5]),
    })

    result = await service.verify_identity(*_streams())

    assert result.confidence_score == pytest.approx(0.7)
    assert result.is_verified is True
    assert result.message.startswith("Identity verified successfully with 70.00%")
    assert result.attempt_date.tzinfo == timezone.utc


@pytest.mark.asyncio
async def test_verify_identity_rewinds_streams_for_each_pass(service, vision):
    vision.detect.side_effect = _by_image({
        DOC: Detection(detected=True, people_confidences=[0.8]),
        SELFIE: Detection(detected=True, people_confidences=[0.8]),
    })

    await service.verify_identity(*_streams())

    assert vision.detect.await_count == 4
    seen = sorted(call.args[0] for call in vision.detect.await_args_list)
    assert seen == [DOC, DOC, SELFIE, SELFIE]


@pytest.mark.asyncio
async def test_verify_identity_uses_top_person_confidence(service, vision):
    vision.detect.side_effect = _by_image({
        DOC: Detection(detected=True, people_confidences=[0.2, 0.95]),
        SELFIE: Detection(detected=True, people_confidences=[0.85]),
    })

    result = await service.verify_identity(*_streams())

    assert result.confidence_score == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_verify_identity_below_threshold(service, vision):
    vision.detect.side_effect = _by_image({
        DOC: Detection(detected=True, people_confidences=[0.6]),
        SELFIE: Detection(detected=True, people_confidences=[0.5]),
    })

    result = await service.verify_identity(*_streams())

    assert result.is_verified is False
    assert result.confidence_score == pytest.approx(0.55)
    assert "below threshold of 70.00%" in result.message


@pytest.mark.asyncio
async def test_verify_identity_no_face_skips_comparison(service, vision):
    vision.detect.side_effect = _by_image({
        DOC: Detection(detected=True, people_confidences=[0.9]),
        SELFIE: Detection(detected=False),
    })

    result = await service.verify_identity(*_streams())

    assert result.is_verified is False
    assert result.confidence_score == 0.0
    assert result.message == "Could not detect face in one or both images"
    assert vision.detect.await_count == 2


@pytest.mark.asyncio
async def test_verify_identity_people_missing_on_comparison(service, vision):
    calls = {DOC: 0, SELFIE: 0}

    def _detect(data):
        calls[data] += 1
        if data == SELFIE and calls[data] > 1:
            return Detection(detected=False)
        return Detection(detected=True, people_confidences=[0.9])

    vision.detect.side_effect = _detect

    result = await service.verify_identity(*_streams())

    assert result.is_verified is False
    assert result.confidence_score == 0.0
    assert result.message == "One or both images do not contain detectable people"
    assert vision.detect.await_count == 4


@pytest.mark.asyncio
async def test_verify_identity_detection_fault_becomes_result(service, vision):
    vision.detect.side_effect = HttpResponseError(message="Service unavailable")

    result = await service.verify_identity(*_streams())

    assert result.is_verified is False
    assert result.confidence_score == 0.0
    assert result.message.startswith("Verification failed due to error:")
    assert "Service unavailable" in result.message


@pytest.mark.asyncio
async def test_verify_identity_comparison_fault_becomes_result(service, vision):
    calls = {"n": 0}

    def _detect(data):
        calls["n"] += 1
        if calls["n"] > 2:
            raise ConnectionError("connection reset")
        return Detection(detected=True, people_confidences=[0.9])

    vision.detect.side_effect = _detect

    result = await service.verify_identity(*_streams())

    assert result.is_verified is False
    assert result.confidence_score == 0.0
    assert "connection reset" in result.message


@pytest.mark.asyncio
async def test_verify_identity_timeout_becomes_result(settings, vision, storage, repository):
    settings.vision_timeout = 0.01
    service = IdentityVerificationService(settings, vision, storage, repository)

    async def _slow(data):
        await asyncio.sleep(1)

    vision.detect.side_effect = _slow

    result = await service.verify_identity(*_streams())

    assert result.is_verified is False
    assert "timed out" in result.message


# ==========================================
#  save_image / save_verification_attempt
# ==========================================


@pytest.mark.asyncio
async def test_save_image_returns_blob_url(service, storage):
    stream = io.BytesIO(DOC)
    stream.read()

    url = await service.save_image(stream, "document/a.jpg", "image/jpeg")

    assert url.endswith("/verification-images/document/a.jpg")
    storage.upload_blob.assert_awaited_once_with("document/a.jpg", DOC, content_type="image/jpeg")


@pytest.mark.asyncio
async def test_save_image_propagates_storage_fault(service, storage):
    storage.upload_blob.side_effect = HttpResponseError(message="403 Forbidden")

    with pytest.raises(HttpResponseError):
        await service.save_image(io.BytesIO(DOC), "document/a.jpg")


def _result(score=0.8, verified=True):
    return VerificationResult(
        is_verified=verified,
        confidence_score=score,
        message="ok",
        attempt_date=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_save_verification_attempt_copies_fields(service, repository):
    result = _result()

    attempt = await service.save_verification_attempt(result, "https://x/doc.jpg", "https://x/selfie.jpg")

    assert attempt.id == 1
    assert attempt.document_path == "https://x/doc.jpg"
    assert attempt.selfie_path == "https://x/selfie.jpg"
    assert attempt.is_verified is True
    assert attempt.confidence_score == 0.8
    assert attempt.attempt_date == result.attempt_date
    repository.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_save_verification_attempt_propagates_db_fault(service, repository):
    repository.create.side_effect = RuntimeError("deadlock")

    with pytest.raises(RuntimeError, match="deadlock"):
        await service.save_verification_attempt(_result(), "doc", "selfie")


@pytest.mark.asyncio
async def test_save_verification_attempt_rejects_long_path(service, repository):
    with pytest.raises(ValueError, match="document_path"):
        await service.save_verification_attempt(_result(), "x" * 501, "selfie")
    repository.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_load_attempt_image_resolves_blob_name(service, storage):
    attempt = VerificationAttempt(
        id=3,
        document_path="https://acct.blob.core.windows.net/verification-images/document/a.jpg",
        selfie_path="https://acct.blob.core.windows.net/verification-images/selfie/b.jpg",
        is_verified=True,
        confidence_score=0.9,
        attempt_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )

    await service.load_attempt_image(attempt, ImageKind.SELFIE)

    storage.download_blob.assert_awaited_once_with("selfie/b.jpg")
