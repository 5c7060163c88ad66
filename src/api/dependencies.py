"""FastAPI dependencies."""

from functools import lru_cache

from fastapi import Depends

from src.config.settings import Settings, get_settings
from src.infrastructure.storage.blob_client import BlobStorageClient
from src.infrastructure.vision.client import VisionClient
from src.orchestrator.pipeline import VerificationPipeline
from src.services.verification.repository import AttemptRepository
from src.services.verification.service import IdentityVerificationService

_vision_client: VisionClient | None = None
_storage_client: BlobStorageClient | None = None


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings as a FastAPI dependency."""
    return get_settings()


def get_vision_client(settings: Settings) -> VisionClient:
    """Get or create the shared VisionClient."""
    global _vision_client
    if _vision_client is None:
        _vision_client = VisionClient(settings)
    return _vision_client


def get_storage_client(settings: Settings) -> BlobStorageClient:
    """Get or create the shared BlobStorageClient, so the container check runs once per process."""
    global _storage_client
    if _storage_client is None:
        _storage_client = BlobStorageClient(settings)
    return _storage_client


async def close_shared_clients() -> None:
    """Close shared clients. Called on application shutdown."""
    global _vision_client, _storage_client
    if _vision_client is not None:
        await _vision_client.close()
        _vision_client = None
    if _storage_client is not None:
        await _storage_client.close()
        _storage_client = None


def get_verification_service(
    settings: Settings = Depends(get_settings_dependency),  # noqa: B008
) -> IdentityVerificationService:
    return IdentityVerificationService(
        settings,
        vision=get_vision_client(settings),
        storage=get_storage_client(settings),
        repository=AttemptRepository(settings),
    )


def get_verification_pipeline(
    settings: Settings = Depends(get_settings_dependency),  # noqa: B008
    service: IdentityVerificationService = Depends(get_verification_service),  # noqa: B008
) -> VerificationPipeline:
    return VerificationPipeline(settings, service)
