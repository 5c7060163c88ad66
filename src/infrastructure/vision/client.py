"""Azure AI Vision (Image Analysis) client."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from azure.ai.vision.imageanalysis.aio import ImageAnalysisClient
from azure.ai.vision.imageanalysis.models import VisualFeatures
from azure.core.credentials import AzureKeyCredential

from src.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Detection:
    """People found in a single image."""

    detected: bool
    people_confidences: list[float] = field(default_factory=list)


class VisionClient:
    """Detects people in images through the Image Analysis ``People`` feature.

    Service and transport errors are not caught here; callers decide
    whether a failure is fatal.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: Optional[ImageAnalysisClient] = None

    def _get_client(self) -> ImageAnalysisClient:
        if self._client is not None:
            return self._client

        if not self.settings.azure_vision_endpoint or not self.settings.azure_vision_key:
            raise ValueError(
                "Azure Vision configuration required. "
                "Set 'azure_vision_endpoint' and 'azure_vision_key' in settings."
            )

        self._client = ImageAnalysisClient(
            endpoint=self.settings.azure_vision_endpoint,
            credential=AzureKeyCredential(self.settings.azure_vision_key),
        )
        return self._client

    async def detect(self, image_data: bytes) -> Detection:
        """
        Analyze an image and report detected people.

        Args:
            image_data: Encoded image bytes (JPEG, PNG, ...)

        Returns:
            Detection with one confidence per detected person

        Raises:
            ValueError: If the image is empty or the client is not configured
            AzureError: If the service call fails
        """
        if not image_data:
            raise ValueError("Image data cannot be empty")

        result = await self._get_client().analyze(
            image_data=image_data,
            visual_features=[VisualFeatures.PEOPLE],
            gender_neutral_caption=True,
        )

        people = result.people.list if result.people is not None else []
        confidences = [float(person.confidence) for person in people]

        if confidences:
            logger.info(f"Detected {len(confidences)} person(s) in the image")
        else:
            logger.warning("No faces detected in the image")

        return Detection(detected=bool(confidences), people_confidences=confidences)

    async def close(self):
        """Close the underlying service client."""
        if self._client:
            await self._client.close()
            self._client = None
