"""
Object storage client for gallery images.

Supports Cloudflare R2, AWS S3, or MinIO through the S3 API, with a mock
mode for local development.
Using the S3 API because:
- R2, S3 and MinIO all speak it, so switching provider is a config change
- boto3 handles signing, retries and pagination
- Objects get plain, stable URLs we can show directly in <img> tags

Mock mode stores images in memory, enabling the full gallery without
provisioning a bucket.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import quote, unquote, urlsplit

from ...core.images.models import ImageNotFoundError, ImageStoreError
from ...core.images.naming import is_direct_child, normalize_prefix

logger = logging.getLogger(__name__)


class StorageError(ImageStoreError):
    """Raised when storage operations fail."""
    pass


class ObjectNotFoundError(StorageError, ImageNotFoundError):
    """Raised when an object, or the URL naming it, is not in the bucket."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for R2/S3-compatible storage.

    public_base_url is the root under which objects are publicly
    readable (an R2 custom domain, a CDN origin, ...). Without it, URLs
    are built from the endpoint in path style.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: Optional[str] = None
    region: str = "auto"  # R2 uses 'auto' for region
    public_base_url: Optional[str] = None

    @property
    def url_root(self) -> str:
        """Root URL that object names are appended to."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com"


@dataclass
class StoredObject:
    """An object's bytes and content type, as read back from storage."""
    object_name: str
    data: bytes
    content_type: str


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Structurally the same as core.images.ImageStore, plus reading an
    object back, which only the HTTP layer needs.
    """

    async def upload_object(
        self,
        data: bytes,
        object_name: str,
        content_type: str,
    ) -> str:
        """Upload object and return its name."""
        ...

    async def list_objects(self, prefix: str) -> list[str]:
        """List object names directly under prefix."""
        ...

    async def get_object_url(self, object_name: str) -> str:
        """Resolve object name to a fetchable URL."""
        ...

    async def delete_object(self, object_name: str) -> None:
        """Delete object by name."""
        ...

    async def download_object(self, object_name: str) -> StoredObject:
        """Read object data by name."""
        ...

    def object_name_from_url(self, url: str) -> str:
        """Map a URL from get_object_url back to its object name."""
        ...


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def build_object_url(url_root: str, object_name: str) -> str:
    """Join root and percent-encoded object name ('/' kept as separator)."""
    return f"{url_root.rstrip('/')}/{quote(object_name, safe='/')}"


def parse_object_url(url_root: str, url: str) -> str:
    """
    Inverse of build_object_url.

    Query string and fragment are ignored so URLs decorated with cache
    busters still resolve.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        raise ObjectNotFoundError(f"Invalid URL: {url}")

    bare = parts._replace(query="", fragment="").geturl()
    root = url_root.rstrip("/") + "/"

    if not bare.startswith(root):
        raise ObjectNotFoundError(f"URL is not in this bucket: {url}")

    object_name = unquote(bare[len(root):])
    if not object_name:
        raise ObjectNotFoundError(f"URL does not name an object: {url}")

    return object_name


class S3StorageClient:
    """
    S3-compatible object storage client (R2, S3, MinIO).

    Uses boto3 because R2 is S3-compatible. This abstraction means
    we could swap to actual S3, MinIO, or other S3-compatible storage
    with minimal changes.

    All methods are async to match the Protocol even though boto3 is
    synchronous. This keeps the interface consistent with truly async
    storage clients.
    """

    def __init__(self, config: StorageConfig, s3_client=None) -> None:
        """
        Initialize the client with boto3.

        boto3 is imported here (not at module level) because mock mode
        doesn't need it. Tests pass a ready-made s3_client instead.
        """
        self._config = config

        if s3_client is None:
            try:
                import boto3
                from botocore.config import Config
            except ImportError:
                raise ImportError(
                    "boto3 is required for S3 storage. Install with: pip install boto3"
                )

            # R2 requires v4 signatures and path-style addressing
            boto_config = Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'},
            )

            s3_client = boto3.client(
                's3',
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=config.region,
                config=boto_config,
            )

        self._s3_client = s3_client

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    async def upload_object(
        self,
        data: bytes,
        object_name: str,
        content_type: str,
    ) -> str:
        """Create or replace an object (PUT overwrites by name)."""
        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=object_name,
                Body=data,
                ContentType=content_type,
            )

            logger.debug(
                "Uploaded object",
                extra={
                    "object_name": object_name,
                    "size_bytes": len(data),
                }
            )

            return object_name

        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"object_name": object_name, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

    async def list_objects(self, prefix: str) -> list[str]:
        """
        List every object directly under prefix.

        Walks all pages. The '/' delimiter keeps "subfolders" out of the
        result, and zero-byte folder markers (keys ending in '/') are
        skipped.
        """
        prefix = normalize_prefix(prefix)

        try:
            paginator = self._s3_client.get_paginator('list_objects_v2')
            pages = paginator.paginate(
                Bucket=self._config.bucket_name,
                Prefix=prefix,
                Delimiter='/',
            )

            names = [
                obj['Key']
                for page in pages
                for obj in page.get('Contents', [])
                if is_direct_child(prefix, obj["Key"])
            ]

        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"List failed: {e}")

        logger.debug(
            "Listed objects",
            extra={"prefix": prefix, "count": len(names)}
        )

        return names

    async def get_object_url(self, object_name: str) -> str:
        """
        Public URL for an object.

        The bucket (or its public domain) must allow anonymous reads for
        these URLs to load in a browser.
        """
        return build_object_url(self._config.url_root, object_name)

    async def delete_object(self, object_name: str) -> None:
        """Delete an object. Deleting a missing key is not an error in S3."""
        try:
            self._s3_client.delete_object(
                Bucket=self._config.bucket_name,
                Key=object_name,
            )

            logger.info(
                "Deleted object",
                extra={"object_name": object_name}
            )

        except Exception as e:
            logger.error(
                "Failed to delete object",
                extra={"object_name": object_name, "error": str(e)}
            )
            raise StorageError(f"Delete failed: {e}")

    async def download_object(self, object_name: str) -> StoredObject:
        """Read an object's data from the bucket."""
        from botocore.exceptions import ClientError

        try:
            response = self._s3_client.get_object(
                Bucket=self._config.bucket_name,
                Key=object_name,
            )

            return StoredObject(
                object_name=object_name,
                data=response['Body'].read(),
                content_type=response.get('ContentType', 'application/octet-stream'),
            )

        except ClientError as e:
            logger.error(
                "Failed to download object",
                extra={"object_name": object_name, "error": str(e)}
            )
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                raise ObjectNotFoundError(f"Object not found: {object_name}")
            raise StorageError(f"Download failed: {e}")

        except Exception as e:
            logger.error(
                "Failed to download object",
                extra={"object_name": object_name, "error": str(e)}
            )
            raise StorageError(f"Download failed: {e}")

    def object_name_from_url(self, url: str) -> str:
        return parse_object_url(self._config.url_root, url)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development.

    This mock enables running the whole gallery without provisioning a
    bucket. Objects are stored in a dictionary and URLs are built from
    base_url, which the app points at its own object passthrough route
    so images render in the browser.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, base_url: str = "mock://storage") -> None:
        # {object_name: (bytes, content_type)}, in upload order
        self._objects: dict[str, tuple[bytes, str]] = {}
        self._base_url = base_url
        logger.info("Initialized mock storage client (in-memory)")

    async def upload_object(
        self,
        data: bytes,
        object_name: str,
        content_type: str,
    ) -> str:
        """Store object in memory."""
        self._objects[object_name] = (data, content_type)

        logger.debug(
            "Stored object in mock storage",
            extra={"object_name": object_name, "size_bytes": len(data)}
        )

        return object_name

    async def list_objects(self, prefix: str) -> list[str]:
        prefix = normalize_prefix(prefix)
        return [
            name for name in self._objects
            if is_direct_child(prefix, name)
        ]

    async def get_object_url(self, object_name: str) -> str:
        if object_name not in self._objects:
            raise ObjectNotFoundError(f"Object not found: {object_name}")

        return build_object_url(self._base_url, object_name)

    async def delete_object(self, object_name: str) -> None:
        """Delete object from memory. Missing objects are ignored, as in S3."""
        self._objects.pop(object_name, None)

        logger.debug(
            "Deleted object from mock storage",
            extra={"object_name": object_name}
        )

    async def download_object(self, object_name: str) -> StoredObject:
        """Retrieve object from memory."""
        if object_name not in self._objects:
            raise ObjectNotFoundError(f"Object not found: {object_name}")

        data, content_type = self._objects[object_name]
        return StoredObject(
            object_name=object_name,
            data=data,
            content_type=content_type,
        )

    def object_name_from_url(self, url: str) -> str:
        return parse_object_url(self._base_url, url)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
    mock_base_url: str = "mock://storage",
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return in-memory client
        mock_base_url: URL root for objects served in mock mode

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient(base_url=mock_base_url)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
