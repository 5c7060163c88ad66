"""Tests for the vision client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from azure.ai.vision.imageanalysis.models import VisualFeatures
from azure.core.exceptions import HttpResponseError

from src.config.settings import Settings
from src.infrastructure.vision.client import Detection, VisionClient


def _analysis(*confidences):
    people = [SimpleNamespace(confidence=c) for c in confidences]
    return SimpleNamespace(people=SimpleNamespace(list=people))


@pytest.fixture
def analyze():
    with patch("src.infrastructure.vision.client.ImageAnalysisClient") as client_cls:
        client_cls.return_value.analyze = AsyncMock()
        yield client_cls.return_value.analyze


@pytest.mark.asyncio
async def test_detect_returns_people_confidences(settings, analyze):
    analyze.return_value = _analysis(0.91, 0.35)

    detection = await VisionClient(settings).detect(b"image")

    assert detection == Detection(detected=True, people_confidences=[0.91, 0.35])
    kwargs = analyze.await_args.kwargs
    assert kwargs["image_data"] == b"image"
    assert kwargs["visual_features"] == [VisualFeatures.PEOPLE]


@pytest.mark.asyncio
async def test_detect_no_people(settings, analyze):
    analyze.return_value = _analysis()

    detection = await VisionClient(settings).detect(b"image")

    assert detection.detected is False
    assert detection.people_confidences == []


@pytest.mark.asyncio
async def test_detect_missing_people_section(settings, analyze):
    analyze.return_value = SimpleNamespace(people=None)

    detection = await VisionClient(settings).detect(b"image")

    assert detection.detected is False


@pytest.mark.asyncio
async def test_detect_propagates_service_errors(settings, analyze):
    analyze.side_effect = HttpResponseError(message="Quota exceeded")

    with pytest.raises(HttpResponseError):
        await VisionClient(settings).detect(b"image")


@pytest.mark.asyncio
async def test_detect_rejects_empty_image(settings, analyze):
    with pytest.raises(ValueError):
        await VisionClient(settings).detect(b"")
    analyze.assert_not_awaited()


@pytest.mark.asyncio
async def test_detect_requires_configuration():
    client = VisionClient(Settings(azure_vision_endpoint="", azure_vision_key=""))

    with pytest.raises(ValueError, match="Azure Vision configuration required"):
        await client.detect(b"image")
