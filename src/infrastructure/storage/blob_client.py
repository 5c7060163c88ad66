"""Azure Blob Storage client."""

import asyncio
import logging
from typing import Optional
from urllib.parse import unquote, urlparse

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from src.config.settings import Settings

logger = logging.getLogger(__name__)


class BlobStorageClient:
    """Azure Blob Storage client for verification images.

    The container is created lazily on first use. Concurrent first callers
    wait on a lock so the existence check and creation happen exactly once.
    """

    def __init__(self, settings: Settings):
        """Initialize blob storage client.

        Args:
            settings: Application settings containing Azure Storage configuration
        """
        self.settings = settings
        self.container_name = settings.azure_storage_container_name
        self.credential: Optional[DefaultAzureCredential] = None
        self._client: Optional[BlobServiceClient] = None
        self._container_ready = False
        self._init_lock = asyncio.Lock()
        logger.info(
            "BlobStorageClient initialized (container '%s' will be ensured on first use)",
            self.container_name,
        )

    def _get_client(self) -> BlobServiceClient:
        """
        Get or create the BlobServiceClient instance.

        Returns:
            BlobServiceClient instance

        Raises:
            ValueError: If neither connection string nor account URL is configured
        """
        if self._client is not None:
            return self._client

        # Prefer connection string if available
        if self.settings.azure_storage_connection_string:
            logger.debug("Using connection string for blob storage")
            self._client = BlobServiceClient.from_connection_string(
                self.settings.azure_storage_connection_string
            )
            return self._client

        # Use account URL with credential
        if self.settings.azure_storage_account_url:
            logger.debug(
                f"Using account URL with credential: {self.settings.azure_storage_account_url}"
            )
            self.credential = DefaultAzureCredential()
            self._client = BlobServiceClient(
                account_url=self.settings.azure_storage_account_url,
                credential=self.credential,
            )
            return self._client

        raise ValueError(
            "Azure Storage configuration required. "
            "Set either 'azure_storage_connection_string' or 'azure_storage_account_url' in settings."
        )

    def blob_name_from_url(self, blob_url: str) -> str:
        """Recover the blob name from a URL returned by ``upload_blob``."""
        path = unquote(urlparse(blob_url).path)
        marker = f"/{self.container_name}/"
        if marker not in path:
            raise ValueError(f"URL does not point into container '{self.container_name}'")
        return path.split(marker, 1)[1]

    def _get_container(self) -> ContainerClient:
        return self._get_client().get_container_client(self.container_name)

    async def ensure_container(self) -> None:
        """Create the container if needed. Runs the check-and-create at most once."""
        if self._container_ready:
            return

        async with self._init_lock:
            if self._container_ready:
                return
            try:
                container = self._get_container()
                if not await container.exists():
                    try:
                        await container.create_container()
                    except ResourceExistsError:
                        pass
                logger.info(f"Container '{self.container_name}' is ready")
                self._container_ready = True
            except Exception as e:
                logger.error(
                    f"Error ensuring container '{self.container_name}' exists: {e}",
                    exc_info=True,
                )
                raise

    async def upload_blob(
        self,
        blob_name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload blob to Azure Storage, overwriting any blob with the same name.

        Args:
            blob_name: Blob name
            data: Blob data as bytes
            content_type: Content type (e.g., 'image/jpeg')

        Returns:
            URL to the uploaded blob

        Raises:
            ValueError: If data is empty or storage configuration is missing
            AzureError: If upload fails
        """
        if not data:
            raise ValueError("Blob data cannot be empty")

        await self.ensure_container()

        try:
            blob_client = self._get_container().get_blob_client(blob_name)

            upload_kwargs = {}
            if content_type:
                upload_kwargs["content_settings"] = ContentSettings(content_type=content_type)

            logger.debug(f"Uploading blob '{blob_name}' to container '{self.container_name}'")
            await blob_client.upload_blob(data, overwrite=True, **upload_kwargs)

            blob_url = blob_client.url
            logger.info(f"Blob uploaded successfully: {blob_url}")
            return blob_url

        except AzureError as e:
            logger.error(f"Azure Storage upload error: {e}", exc_info=True)
            raise
        except Exception as e:
            logger.error(f"Unexpected error uploading blob: {e}", exc_info=True)
            raise

    async def download_blob(self, blob_name: str) -> bytes:
        """
        Download a blob's content.

        Raises:
            ResourceNotFoundError: If the blob does not exist
            AzureError: If the download fails
        """
        await self.ensure_container()

        try:
            blob_client = self._get_container().get_blob_client(blob_name)
            downloader = await blob_client.download_blob()
            content = await downloader.readall()
            logger.info(f"Downloaded blob '{blob_name}' ({len(content)} bytes)")
            return content
        except ResourceNotFoundError:
            logger.warning(f"Blob '{blob_name}' not found in container '{self.container_name}'")
            raise
        except Exception as e:
            logger.error(f"Error downloading blob '{blob_name}': {e}", exc_info=True)
            raise

    async def delete_blob(self, blob_name: str) -> None:
        """Delete a blob. Missing blobs are ignored."""
        try:
            blob_client = self._get_container().get_blob_client(blob_name)
            await blob_client.delete_blob()
            logger.info(f"Blob '{blob_name}' deleted from container '{self.container_name}'")
        except ResourceNotFoundError:
            logger.debug(f"Blob '{blob_name}' already absent from '{self.container_name}'")
        except Exception as e:
            logger.error(f"Unexpected error deleting blob: {e}", exc_info=True)
            raise

    async def close(self):
        """Close the blob storage client."""
        if self._client:
            await self._client.close()
            self._client = None
        if self.credential:
            await self.credential.close()
            self.credential = None
