"""Identity verification service."""

import asyncio
import logging
from typing import BinaryIO, Optional

from src.config.constants import ImageKind
from src.config.settings import Settings
from src.infrastructure.storage.blob_client import BlobStorageClient
from src.infrastructure.vision.client import VisionClient
from src.services.verification.models import (
    Detected,
    DetectionOutcome,
    NotDetected,
    TransportFault,
    VerificationAttempt,
    VerificationResult,
)
from src.services.verification.repository import AttemptRepository
from src.services.verification.scoring import (
    NO_FACE_MESSAGE,
    NO_PEOPLE_MESSAGE,
    combine_confidence,
    error_result,
    failed_result,
    scored_result,
)

logger = logging.getLogger(__name__)


def read_stream(stream: BinaryIO) -> bytes:
    """Read a seekable stream from the start."""
    stream.seek(0)
    return stream.read()


class IdentityVerificationService:
    """Compares a document photo with a selfie and records the attempt.

    Vision failures are reported as a failed ``VerificationResult``.
    Storage and database failures are raised to the caller.
    """

    def __init__(
        self,
        settings: Settings,
        vision: VisionClient,
        storage: BlobStorageClient,
        repository: AttemptRepository,
    ) -> None:
        self.settings = settings
        self.vision = vision
        self.storage = storage
        self.repository = repository

    async def _analyze(self, image: BinaryIO) -> DetectionOutcome:
        """Run people detection on one image, folding faults into the outcome."""
        try:
            data = read_stream(image)
            try:
                detection = await asyncio.wait_for(
                    self.vision.detect(data), timeout=self.settings.vision_timeout
                )
            except asyncio.TimeoutError as e:
                raise TimeoutError(
                    f"Vision analysis timed out after {self.settings.vision_timeout}s"
                ) from e
        except Exception as e:
            logger.error(f"Error analyzing image: {e}", exc_info=True)
            return TransportFault(cause=e)

        if detection.detected and detection.people_confidences:
            return Detected(people_confidences=list(detection.people_confidences))
        return NotDetected()

    async def _analyze_pair(
        self, document_image: BinaryIO, selfie_image: BinaryIO
    ) -> tuple[DetectionOutcome, DetectionOutcome]:
        document, selfie = await asyncio.gather(
            self._analyze(document_image), self._analyze(selfie_image)
        )
        return document, selfie

    async def verify_identity(
        self, document_image: BinaryIO, selfie_image: BinaryIO
    ) -> VerificationResult:
        """
        Detect a person in both images and score the pair.

        The result is never an exception: missing faces, low confidence and
        vision service errors all come back as a non-verified result.
        """
        logger.info("Starting identity verification process")
        try:
            return await self._evaluate(document_image, selfie_image)
        except Exception as e:
            logger.error(f"Error during identity verification: {e}", exc_info=True)
            return error_result(e)

    async def _evaluate(
        self, document_image: BinaryIO, selfie_image: BinaryIO
    ) -> VerificationResult:
        outcomes = await self._analyze_pair(document_image, selfie_image)
        for outcome in outcomes:
            if isinstance(outcome, TransportFault):
                return error_result(outcome.cause)
        if not all(isinstance(outcome, Detected) for outcome in outcomes):
            logger.warning("Face missing from one or both images")
            return failed_result(NO_FACE_MESSAGE)

        # Comparison pass: re-analyse both images and average the top person confidences
        document, selfie = await self._analyze_pair(document_image, selfie_image)
        for outcome in (document, selfie):
            if isinstance(outcome, TransportFault):
                return error_result(outcome.cause)
        if not isinstance(document, Detected) or not isinstance(selfie, Detected):
            logger.warning("One or both images do not contain detectable people")
            return failed_result(NO_PEOPLE_MESSAGE)

        score = combine_confidence(document.top_confidence, selfie.top_confidence)
        logger.info(f"Face comparison confidence: {score:.2%}")
        return scored_result(score, self.settings.verification_threshold)

    async def save_image(
        self, image_stream: BinaryIO, file_name: str, content_type: Optional[str] = None
    ) -> str:
        """Upload an image and return its blob URL. Failures propagate."""
        data = read_stream(image_stream)
        try:
            blob_url = await asyncio.wait_for(
                self.storage.upload_blob(file_name, data, content_type=content_type),
                timeout=self.settings.storage_timeout,
            )
        except Exception as e:
            logger.error(f"Error saving image {file_name}: {e}")
            raise
        logger.info(f"Image saved successfully: {file_name}")
        return blob_url

    async def load_image(self, file_name: str) -> bytes:
        return await asyncio.wait_for(
            self.storage.download_blob(file_name), timeout=self.settings.storage_timeout
        )

    async def load_attempt_image(self, attempt: VerificationAttempt, kind: ImageKind) -> bytes:
        """Download the document or selfie image recorded on an attempt."""
        path = attempt.document_path if kind is ImageKind.DOCUMENT else attempt.selfie_path
        return await self.load_image(self.storage.blob_name_from_url(path))

    async def delete_image(self, file_name: str) -> None:
        await asyncio.wait_for(
            self.storage.delete_blob(file_name), timeout=self.settings.storage_timeout
        )

    async def save_verification_attempt(
        self, result: VerificationResult, document_path: str, selfie_path: str
    ) -> VerificationAttempt:
        """Persist the attempt and return it with its generated id. Failures propagate."""
        try:
            attempt = VerificationAttempt.from_result(result, document_path, selfie_path)
            attempt = await self.repository.create(attempt)
        except Exception as e:
            logger.error(f"Error saving verification attempt: {e}")
            raise
        logger.info(f"Verification attempt saved with ID: {attempt.id}")
        return attempt
