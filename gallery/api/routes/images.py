"""
Image gallery API endpoints.

The browser drives the gallery through these:
1. GET    /              -> list every image (first page load)
2. POST   /              -> upload the picked file, get its URL back
3. DELETE /?url=...      -> delete the image behind a URL
4. GET    /view          -> redirect to the image
5. GET    /download      -> the image as an attachment
6. GET    /objects/{name} -> raw bytes (how mock-mode URLs resolve)

Each request gets its own ImageGallery; the browser owns the list it is
showing and applies the same append/filter rules to it.
"""

import logging
from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel, Field

from ...core.images.models import ImageNotFoundError, SelectedFile
from ...core.images.naming import clean_filename
from ...infrastructure.storage.client import ObjectNotFoundError, StorageError
from ..dependencies import ImageGalleryDep, SettingsDep, StorageClientDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class ImageListResponse(BaseModel):
    """Current images in the gallery."""
    images: list[str] = Field(description="Resolved image URLs, in provider order")
    loading: bool = Field(description="False once the listing has completed")
    error: Optional[str] = Field(
        default=None,
        description="Why the listing failed, if it did (images is then empty)"
    )


class ImageUploadResponse(BaseModel):
    """Response after uploading an image."""
    url: str = Field(description="URL of the uploaded image")
    object_name: str = Field(description="Name of the object in the bucket")
    filename: str = Field(description="Original filename")
    message: str = Field(description="Status message")


class ImageDeleteResponse(BaseModel):
    """Response after deleting an image."""
    url: str = Field(description="URL that was deleted")
    object_name: str = Field(description="Name of the deleted object")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ImageListResponse,
    status_code=status.HTTP_200_OK,
    summary="List images",
    description="List every image under the gallery prefix with its URL",
)
async def list_images(gallery: ImageGalleryDep) -> ImageListResponse:
    """
    List images.

    A storage failure is not an HTTP error here: the gallery degrades to an
    empty list and the reason is reported in `error`.
    """
    result = await gallery.load()

    return ImageListResponse(
        images=gallery.state.image_urls,
        loading=gallery.state.loading,
        error=result.error,
    )


@router.post(
    "",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload image",
    description="Upload an image to the gallery",
)
async def upload_image(
    file: Annotated[UploadFile, File(description="Image file (JPEG, PNG, GIF, WebP, ...)")],
    gallery: ImageGalleryDep,
    settings: SettingsDep,
) -> ImageUploadResponse:
    """
    Upload an image.

    The object is named after the original file plus a random suffix, so
    uploading the same file twice yields two images.
    """
    content_type = (file.content_type or "").lower()
    if content_type not in settings.allowed_image_types_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported image type: {file.content_type or 'unknown'}"
        )

    try:
        filename = clean_filename(file.filename or "")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file has no filename"
        )

    data = await file.read()

    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )

    if len(data) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image too large. Maximum size: {settings.max_upload_size_mb}MB"
        )

    logger.info(
        "Image upload started",
        extra={
            "image_filename": filename,
            "content_type": content_type,
            "size_bytes": len(data),
        }
    )

    gallery.select_file(SelectedFile(
        filename=filename,
        data=data,
        content_type=content_type,
    ))
    result = await gallery.upload()

    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to store image"
        )

    return ImageUploadResponse(
        url=result.url,
        object_name=result.object_name,
        filename=filename,
        message="Image uploaded successfully",
    )


@router.delete(
    "",
    response_model=ImageDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete image",
    description="Delete the image behind a URL returned by this API",
)
async def delete_image(
    gallery: ImageGalleryDep,
    url: Annotated[str, Query(description="Image URL as shown in the gallery")],
) -> ImageDeleteResponse:
    """
    Delete an image.

    Returns 404 when the URL is not a gallery image, and 502 when
    the provider refuses the delete.
    """
    try:
        gallery.object_name_for(url)
    except ImageNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )

    result = await gallery.delete(url)

    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to delete image"
        )

    return ImageDeleteResponse(url=url, object_name=result.object_name)


@router.get(
    "/view",
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="View image",
    description="Redirect to the image URL",
)
async def view_image(
    gallery: ImageGalleryDep,
    url: Annotated[str, Query(description="Image URL as shown in the gallery")],
) -> RedirectResponse:
    """Only gallery image URLs are followed, so this is not an open redirect."""
    try:
        gallery.object_name_for(url)
    except ImageNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )

    return RedirectResponse(
        url=gallery.view_target(url),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


@router.get(
    "/download",
    summary="Download image",
    description="Return the image as an attachment named after the URL's last path segment",
    responses={200: {"content": {"image/*": {}}}},
)
async def download_image(
    gallery: ImageGalleryDep,
    storage: StorageClientDep,
    url: Annotated[str, Query(description="Image URL as shown in the gallery")],
) -> Response:
    """
    Download an image.

    The bytes come through the storage client rather than the public URL,
    so this works even when the bucket is on another origin.
    """
    try:
        object_name = gallery.object_name_for(url)
        stored = await storage.download_object(object_name)
    except ImageNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to download image"
        )

    target = gallery.download_target(url)

    return Response(
        content=stored.data,
        media_type=stored.content_type,
        headers={"Content-Disposition": _attachment(target.filename)},
    )


@router.get(
    "/objects/{object_name:path}",
    summary="Get object",
    description="Raw object bytes, used for image URLs in mock mode",
    responses={200: {"content": {"image/*": {}}}},
)
async def get_object(
    object_name: str,
    gallery: ImageGalleryDep,
    storage: StorageClientDep,
) -> Response:
    if not gallery.owns_object(object_name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Not a gallery image: {object_name}"
        )

    try:
        stored = await storage.download_object(object_name)
    except ObjectNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to read image"
        )

    return Response(content=stored.data, media_type=stored.content_type)


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _attachment(filename: str) -> str:
    """Content-Disposition value with an ASCII fallback and RFC 5987 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
