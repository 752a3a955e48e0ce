"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests with app.dependency_overrides
- Configuration is centralized

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated

from fastapi import Depends

from ..config.settings import MOCK_OBJECTS_PATH, Settings, get_settings
from ..core.images.gallery import ImageGallery
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)

# Global mock instance (shared across requests so uploads persist)
_mock_storage_client = None


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for image uploads, listing and deletes.

    Returns either the S3 client or the mock client based on settings.

    In mock mode, we reuse the same client across requests
    so that uploaded images persist for the life of the process.
    """
    global _mock_storage_client

    if settings.storage_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(
                mock_mode=True,
                mock_base_url=MOCK_OBJECTS_PATH,
            )
            logger.info("Created shared mock storage client")
        return _mock_storage_client

    config = StorageConfig(
        access_key_id=settings.storage_access_key_id,
        secret_access_key=settings.storage_secret_access_key,
        bucket_name=settings.storage_bucket_name,
        endpoint_url=settings.storage_endpoint,
        region=settings.storage_region,
        public_base_url=settings.storage_public_base_url,
    )
    client = create_storage_client(config=config)
    logger.debug("Created S3 storage client")

    return client


def get_image_gallery(
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> ImageGallery:
    """
    Provide a fresh gallery bound to the configured prefix.

    The server keeps no per-user state; each request gets its own gallery
    and the browser holds the list it is showing.
    """
    return ImageGallery(store=storage, prefix=settings.image_prefix)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
ImageGalleryDep = Annotated[ImageGallery, Depends(get_image_gallery)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
