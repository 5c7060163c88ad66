"""Verification workflow orchestrator."""

import logging
from typing import BinaryIO, Optional

from src.config.constants import ImageKind, VerificationStep
from src.config.settings import Settings
from src.infrastructure.logging.logger import StructuredLogger
from src.orchestrator.step_timer import timed_step
from src.services.verification.models import VerificationOutcome
from src.services.verification.service import IdentityVerificationService
from src.utils.images import build_blob_name

logger = logging.getLogger(__name__)


class VerificationPipeline:
    """Runs one verification request end to end.

    1. Evaluate the document/selfie pair
    2. Upload both images
    3. Persist the attempt

    Upload and persistence errors propagate. Images already uploaded when
    a later step fails are removed before the error is re-raised.
    """

    def __init__(self, settings: Settings, service: IdentityVerificationService):
        self.settings = settings
        self.service = service
        self.structured = StructuredLogger(__name__)

    async def _discard(self, blob_names: list[str]) -> None:
        for name in blob_names:
            try:
                await self.service.delete_image(name)
            except Exception as cleanup_error:
                logger.warning(f"Could not remove orphaned image {name}: {cleanup_error}")

    async def process(
        self,
        document_image: BinaryIO,
        selfie_image: BinaryIO,
        document_content_type: Optional[str] = None,
        selfie_content_type: Optional[str] = None,
    ) -> VerificationOutcome:
        async with timed_step(VerificationStep.EVALUATION, self.structured) as step:
            result = await self.service.verify_identity(document_image, selfie_image)
            step.set_result(result.to_dict())

        uploaded: list[str] = []
        paths: dict[ImageKind, str] = {}
        try:
            for kind, image, content_type in (
                (ImageKind.DOCUMENT, document_image, document_content_type),
                (ImageKind.SELFIE, selfie_image, selfie_content_type),
            ):
                blob_name = build_blob_name(kind, content_type)
                async with timed_step(
                    VerificationStep.UPLOAD, self.structured, kind=kind.value, blob=blob_name
                ) as step:
                    paths[kind] = await self.service.save_image(image, blob_name, content_type)
                    step.set_result(paths[kind])
                uploaded.append(blob_name)

            async with timed_step(VerificationStep.PERSIST, self.structured) as step:
                attempt = await self.service.save_verification_attempt(
                    result, paths[ImageKind.DOCUMENT], paths[ImageKind.SELFIE]
                )
                step.set_result({"id": attempt.id})
        except Exception:
            await self._discard(uploaded)
            raise

        return VerificationOutcome(result=result, attempt=attempt)
