"""Application configuration with Pydantic Settings.

Settings are loaded from environment variables and a .env file.

Examples:
    >>> from fsassets.config import get_settings
    >>> settings = get_settings()
    >>> settings.ASSETS_FILESYSTEM_ROOT_PATH
    './assets'

    >>> settings.get_storage_config()
    StorageConfig(root_path='/srv/app/assets', public_url='http://localhost:8000/assets', ...)

Tests:
    - tests/unit/test_config.py::TestSettings::test_settings_defaults
    - tests/unit/test_config.py::TestSettings::test_extension_lists
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fsassets.storage.config import StorageConfig

FILESYSTEM_PROVIDER = "FileSystem"


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings for the asset service.

    Attributes:
        ASSETS_PROVIDER: Name of the blob provider to wire up.
        ASSETS_FILESYSTEM_ROOT_PATH: Directory blobs are stored under.
        ASSETS_FILESYSTEM_PUBLIC_URL: Public base URL blobs are served under.
        ASSETS_ALLOWED_EXTENSIONS: Comma-separated allow list; empty allows all.
        ASSETS_BLOCKED_EXTENSIONS: Comma-separated block list.
        ASSETS_READ_RETRY_COUNT: Retries for transiently failing reads.
        ASSETS_READ_RETRY_DELAY_MS: First retry delay in milliseconds.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Provider Selection
    ASSETS_PROVIDER: str = Field(
        default=FILESYSTEM_PROVIDER,
        description="Blob provider name",
    )

    # Filesystem Provider
    ASSETS_FILESYSTEM_ROOT_PATH: str = Field(
        default="./assets",
        description="Blob storage root directory",
    )
    ASSETS_FILESYSTEM_PUBLIC_URL: str = Field(
        default="http://localhost:8000/assets",
        description="Public base URL for blobs",
    )

    # Extension Policy
    ASSETS_ALLOWED_EXTENSIONS: str = Field(
        default="",
        description="Comma-separated allowed extensions (empty allows all)",
    )
    ASSETS_BLOCKED_EXTENSIONS: str = Field(
        default="",
        description="Comma-separated blocked extensions",
    )

    # Read Retries
    ASSETS_READ_RETRY_COUNT: int = Field(
        default=3,
        description="Retries for transiently failing reads (0-10)",
        ge=0,
        le=10,
    )
    ASSETS_READ_RETRY_DELAY_MS: int = Field(
        default=50,
        description="First retry delay in milliseconds",
        ge=0,
    )

    # Application Settings
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    DEBUG: bool = Field(
        default=True,
        description="Enable debug mode",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        v = v.upper()
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {valid_levels}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def is_filesystem_provider(self) -> bool:
        """Check if the filesystem blob provider is selected."""
        return self.ASSETS_PROVIDER.strip().lower() == FILESYSTEM_PROVIDER.lower()

    @property
    def allowed_extensions(self) -> list[str]:
        return _split_list(self.ASSETS_ALLOWED_EXTENSIONS)

    @property
    def blocked_extensions(self) -> list[str]:
        return _split_list(self.ASSETS_BLOCKED_EXTENSIONS)

    def get_storage_config(self) -> StorageConfig:
        """Build the validated storage configuration.

        Returns:
            StorageConfig: Filesystem provider configuration.

        Raises:
            pydantic.ValidationError: If the root path is empty or the public
                URL is not a fully-qualified http, https or ftp URL.
        """
        return StorageConfig(
            root_path=self.ASSETS_FILESYSTEM_ROOT_PATH,
            public_url=self.ASSETS_FILESYSTEM_PUBLIC_URL,
            read_retry_count=self.ASSETS_READ_RETRY_COUNT,
            read_retry_delay_ms=self.ASSETS_READ_RETRY_DELAY_MS,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings loaded from environment.
    """
    return Settings()
