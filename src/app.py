"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from src.api.dependencies import close_shared_clients
from src.api.routers import api_router
from src.config.settings import Settings, get_settings
from src.infrastructure.database.schema import ensure_schema
from src.infrastructure.logging.logger import setup_logging

settings = get_settings()

setup_logging(
    level=settings.log_level,
    json_output=not settings.debug,
    silence_noisy_loggers=True,
)

logger = logging.getLogger(__name__)


def _validate_startup_config(settings: Settings) -> None:
    """Warn about missing collaborator configuration at startup."""
    if not settings.azure_vision_endpoint or not settings.azure_vision_key:
        logger.warning("azure_vision_endpoint or azure_vision_key is empty, verification will fail")

    if not settings.azure_storage_connection_string and not settings.azure_storage_account_url:
        logger.warning(
            "No Azure Storage configured (azure_storage_connection_string or azure_storage_account_url)"
        )

    if not settings.database_connection_string:
        logger.warning("database_connection_string is empty, attempts cannot be stored")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown lifecycle."""
    logger.info("Starting %s", settings.app_name)
    _validate_startup_config(settings)

    if settings.auto_create_schema and settings.database_connection_string:
        try:
            await ensure_schema(settings)
        except Exception as e:
            logger.warning("Failed to ensure database schema: %s", e)

    yield
    logger.info("Shutting down %s", settings.app_name)
    try:
        await close_shared_clients()
        logger.info("Vision and storage clients closed")
    except Exception as e:
        logger.error("Error closing shared clients: %s", e, exc_info=True)


app = FastAPI(
    title="Identity Verification",
    description="Document photo and selfie verification backed by Azure AI Vision",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

app.include_router(api_router, prefix="/api")
