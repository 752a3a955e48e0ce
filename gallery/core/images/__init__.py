"""
Image gallery logic.

Contains the gallery view-model, its domain models, and object naming.
"""

from .models import (
    ActionResult,
    DownloadTarget,
    GalleryState,
    ImageNotFoundError,
    ImageStoreError,
    SelectedFile,
)
from .gallery import ImageGallery, ImageStore
from .naming import build_object_name, download_filename

__all__ = [
    "ActionResult",
    "DownloadTarget",
    "GalleryState",
    "ImageNotFoundError",
    "ImageStoreError",
    "SelectedFile",
    "ImageGallery",
    "ImageStore",
    "build_object_name",
    "download_filename",
]
