"""Verification endpoints."""

import logging

from azure.core.exceptions import ResourceNotFoundError
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from src.api.dependencies import (
    get_settings_dependency,
    get_verification_pipeline,
    get_verification_service,
)
from src.api.models import Attempt, CaptureRequest, VerificationResponse
from src.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ImageKind
from src.config.settings import Settings
from src.orchestrator.pipeline import VerificationPipeline
from src.services.verification.models import VerificationAttempt
from src.services.verification.service import IdentityVerificationService
from src.utils.images import decode_data_url, sniff_content_type, to_stream, validate_image

logger = logging.getLogger(__name__)

router = APIRouter()

_WORKFLOW_ERROR = "Verification could not be completed"


async def _run_pipeline(
    pipeline: VerificationPipeline,
    document: bytes,
    selfie: bytes,
    document_type: str | None,
    selfie_type: str | None,
) -> VerificationResponse:
    try:
        outcome = await pipeline.process(
            to_stream(document),
            to_stream(selfie),
            document_content_type=document_type,
            selfie_content_type=selfie_type,
        )
    except Exception as e:
        logger.error(f"Error processing verification request: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=_WORKFLOW_ERROR) from e
    return VerificationResponse.from_outcome(outcome)


async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read at most one byte past the limit so oversized files are never fully loaded."""
    if upload.size is not None and upload.size > max_bytes:
        raise ValueError(f"Image exceeds maximum size of {max_bytes} bytes")
    return await upload.read(max_bytes + 1)


@router.post("/", response_model=VerificationResponse)
async def verify(
    document: UploadFile = File(..., description="Photo of the identity document"),  # noqa: B008
    selfie: UploadFile = File(..., description="Selfie of the person"),  # noqa: B008
    settings: Settings = Depends(get_settings_dependency),  # noqa: B008
    pipeline: VerificationPipeline = Depends(get_verification_pipeline),  # noqa: B008
) -> VerificationResponse:
    """
    Verify a person against their identity document.

    Both images are analysed, uploaded to blob storage and the attempt is
    recorded. A failed verification is a normal 200 response with
    ``is_verified`` false. Stored content types come from the image bytes,
    not from the declared upload headers.
    """
    try:
        document_bytes = await _read_upload(document, settings.max_image_bytes)
        selfie_bytes = await _read_upload(selfie, settings.max_image_bytes)
        document_type = validate_image(document_bytes, settings.max_image_bytes)
        selfie_type = validate_image(selfie_bytes, settings.max_image_bytes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return await _run_pipeline(pipeline, document_bytes, selfie_bytes, document_type, selfie_type)


@router.post("/capture", response_model=VerificationResponse)
async def verify_capture(
    request: CaptureRequest,
    settings: Settings = Depends(get_settings_dependency),  # noqa: B008
    pipeline: VerificationPipeline = Depends(get_verification_pipeline),  # noqa: B008
) -> VerificationResponse:
    """Verify images captured from a browser camera (``canvas.toDataURL``)."""
    try:
        document_bytes, _ = decode_data_url(request.document_image)
        selfie_bytes, _ = decode_data_url(request.selfie_image)
        document_type = validate_image(document_bytes, settings.max_image_bytes)
        selfie_type = validate_image(selfie_bytes, settings.max_image_bytes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return await _run_pipeline(pipeline, document_bytes, selfie_bytes, document_type, selfie_type)


@router.get("/", response_model=list[Attempt])
async def list_attempts(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    service: IdentityVerificationService = Depends(get_verification_service),  # noqa: B008
) -> list[Attempt]:
    """List stored attempts, newest first."""
    attempts = await service.repository.list_recent(offset, limit)
    return [Attempt.from_attempt(a) for a in attempts]


async def _get_attempt(
    service: IdentityVerificationService, attempt_id: int
) -> VerificationAttempt:
    attempt = await service.repository.get(attempt_id)
    if attempt is None:
        raise HTTPException(status_code=404, detail="Verification attempt not found")
    return attempt


@router.get("/{attempt_id}", response_model=Attempt)
async def get_attempt(
    attempt_id: int,
    service: IdentityVerificationService = Depends(get_verification_service),  # noqa: B008
) -> Attempt:
    """Get a single stored attempt."""
    return Attempt.from_attempt(await _get_attempt(service, attempt_id))


@router.get("/{attempt_id}/images/{kind}")
async def get_attempt_image(
    attempt_id: int,
    kind: ImageKind,
    service: IdentityVerificationService = Depends(get_verification_service),  # noqa: B008
) -> Response:
    """Download the document or selfie image of an attempt."""
    attempt = await _get_attempt(service, attempt_id)
    try:
        content = await service.load_attempt_image(attempt, kind)
    except ResourceNotFoundError as e:
        raise HTTPException(status_code=404, detail="Image not found") from e
    except ValueError as e:
        logger.error(f"Attempt {attempt_id} has an unreadable image path: {e}")
        raise HTTPException(status_code=404, detail="Image not found") from e

    media_type = sniff_content_type(content) or "application/octet-stream"
    return Response(content=content, media_type=media_type)
