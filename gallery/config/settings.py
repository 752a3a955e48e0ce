"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a real bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MOCK_OBJECTS_PATH = "/api/v1/images/objects"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like allowed_image_types), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Image Gallery"
    api_version: str = "v1"

    # Object Storage Configuration
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of a real bucket. Enables local dev without object storage."
    )
    r2_account_id: str = Field(
        default="",
        description="Cloudflare account ID. Used to build the R2 endpoint when storage_endpoint_url is unset."
    )
    storage_access_key_id: str = Field(
        default="",
        description="Access key ID for the bucket"
    )
    storage_secret_access_key: str = Field(
        default="",
        description="Secret access key for the bucket"
    )
    storage_bucket_name: str = Field(
        default="gallery-images",
        description="Bucket holding the images"
    )
    storage_region: str = Field(
        default="auto",
        description="Bucket region. R2 uses 'auto'."
    )
    storage_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3 API endpoint (MinIO, R2, ...). Leave unset for AWS S3 unless r2_account_id is set."
    )
    storage_public_base_url: Optional[str] = Field(
        default=None,
        description="Public URL root for objects, e.g. an R2 custom domain. Defaults to path-style endpoint URLs."
    )

    # Gallery Behavior
    image_prefix: str = Field(
        default="images",
        description="Folder inside the bucket where images live"
    )
    max_upload_size_mb: int = Field(
        default=10,
        description="Maximum image size in MB"
    )
    allowed_image_types: str = Field(
        default="image/jpeg,image/png,image/gif,image/webp,image/svg+xml,image/bmp,image/avif",
        description="Comma-separated content types accepted for upload"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:8000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def allowed_image_types_list(self) -> list[str]:
        """Parse comma-separated content types into a list."""
        return [t.strip().lower() for t in self.allowed_image_types.split(",") if t.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def storage_endpoint(self) -> Optional[str]:
        """
        Resolve the S3 API endpoint.

        An explicit endpoint wins. Otherwise R2 endpoints follow the
        pattern https://{account_id}.r2.cloudflarestorage.com, and with
        neither set boto3 talks to AWS S3.
        """
        if self.storage_endpoint_url:
            return self.storage_endpoint_url
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.storage_access_key_id:
                missing.append("STORAGE_ACCESS_KEY_ID")
            if not self.storage_secret_access_key:
                missing.append("STORAGE_SECRET_ACCESS_KEY")
            if not self.storage_bucket_name:
                missing.append("STORAGE_BUCKET_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
