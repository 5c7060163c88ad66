"""Application settings using Pydantic BaseSettings."""

import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.constants import MAX_IMAGE_BYTES, VERIFICATION_THRESHOLD

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Identity Verification"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{v}'")
        return upper

    @field_validator("verification_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"verification_threshold must be in (0, 1], got {v}")
        return v

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        for field_name in (
            "vision_timeout",
            "storage_timeout",
            "db_max_retry_delay",
        ):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
        if self.db_max_retries < 0:
            raise ValueError(f"db_max_retries must be zero or more, got {self.db_max_retries}")
        return self

    @model_validator(mode="after")
    def warn_wildcard_origins(self) -> "Settings":
        if self.allowed_origins == ["*"]:
            logging.getLogger(__name__).warning(
                "allowed_origins is set to ['*'], consider restricting in production"
            )
        return self

    # CORS
    allowed_origins: list[str] = ["*"]

    # Azure AI Vision (Image Analysis)
    azure_vision_endpoint: str = ""
    azure_vision_key: str = ""
    vision_timeout: float = 30.0

    # Azure Blob Storage
    azure_storage_connection_string: str = ""
    azure_storage_account_url: str = ""
    azure_storage_container_name: str = "verification-images"
    storage_timeout: float = 30.0

    # SQL Database (pyodbc connection string)
    database_connection_string: str = ""
    db_schema: str = "dbo"
    auto_create_schema: bool = False
    db_max_retries: int = 5
    db_max_retry_delay: float = 30.0

    # Verification
    verification_threshold: float = VERIFICATION_THRESHOLD
    max_image_bytes: int = MAX_IMAGE_BYTES


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
