"""
Object storage integration for gallery images.

Supports R2 (Cloudflare), S3 (AWS) and MinIO via the S3-compatible API.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockStorageClient,
    ObjectNotFoundError,
    S3StorageClient,
    StorageClient,
    StorageConfig,
    StorageError,
    StoredObject,
    create_storage_client,
)

__all__ = [
    "MockStorageClient",
    "ObjectNotFoundError",
    "S3StorageClient",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "StoredObject",
    "create_storage_client",
]
