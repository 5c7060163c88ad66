"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config.settings import Settings

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


@pytest.fixture
def settings():
    """Provide settings fixture."""
    return Settings(
        azure_vision_endpoint="https://vision.example.com/",
        azure_vision_key="key",
        azure_storage_connection_string="UseDevelopmentStorage=true",
        database_connection_string="Driver={ODBC Driver 18 for SQL Server};Server=test",
        vision_timeout=5.0,
        storage_timeout=5.0,
    )


@pytest.fixture
def vision():
    client = MagicMock()
    client.detect = AsyncMock()
    return client


@pytest.fixture
def storage():
    client = MagicMock()
    client.upload_blob = AsyncMock(
        side_effect=lambda name, data, content_type=None: f"https://acct.blob.core.windows.net/verification-images/{name}"
    )
    client.download_blob = AsyncMock(return_value=JPEG_BYTES)
    client.delete_blob = AsyncMock()
    client.blob_name_from_url = MagicMock(
        side_effect=lambda url: url.split("/verification-images/", 1)[1]
    )
    return client


@pytest.fixture
def repository():
    repo = MagicMock()

    async def _create(attempt):
        attempt.id = 1
        return attempt

    repo.create = AsyncMock(side_effect=_create)
    repo.get = AsyncMock(return_value=None)
    repo.list_recent = AsyncMock(return_value=[])
    return repo
