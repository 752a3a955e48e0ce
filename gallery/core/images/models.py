"""
Domain models for the image gallery.

These models are the whole of the gallery's state: the file the user
picked, the URLs currently on screen, and whether the first listing has
finished. They have no dependencies on FastAPI or boto3.
"""

from dataclasses import dataclass, field
from typing import Optional


class ImageStoreError(Exception):
    """Raised by image stores when a provider operation fails."""
    pass


class ImageNotFoundError(ImageStoreError):
    """The object (or the URL pointing at it) is unknown to the store."""
    pass


@dataclass(frozen=True)
class SelectedFile:
    """
    A file picked for upload.

    Frozen because a selection is replaced, never edited. Picking another
    file produces a new SelectedFile.
    """
    filename: str
    data: bytes
    content_type: str = "application/octet-stream"

    def __post_init__(self) -> None:
        if not self.filename.strip():
            raise ValueError("Selected file must have a filename")

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass
class GalleryState:
    """
    Mutable UI state for the gallery view.

    - selected_file: held between picking a file and uploading it
    - image_urls: resolved URLs in display order; the URL is the identity
    - loading: True until the first listing completes (either way)
    """
    selected_file: Optional[SelectedFile] = None
    image_urls: list[str] = field(default_factory=list)
    loading: bool = True

    @property
    def selected_filename(self) -> Optional[str]:
        """Filename shown under the upload button."""
        if self.selected_file is None:
            return None
        return self.selected_file.filename


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of a gallery action.

    Actions never raise for provider failures. They return one of these
    so callers can see exactly what happened to the list.
    """
    ok: bool
    url: Optional[str] = None
    object_name: Optional[str] = None
    removed: int = 0
    error: Optional[str] = None

    @classmethod
    def success(
        cls,
        url: Optional[str] = None,
        object_name: Optional[str] = None,
        removed: int = 0,
    ) -> "ActionResult":
        return cls(ok=True, url=url, object_name=object_name, removed=removed)

    @classmethod
    def failure(
        cls,
        error: str,
        url: Optional[str] = None,
        object_name: Optional[str] = None,
    ) -> "ActionResult":
        return cls(ok=False, url=url, object_name=object_name, error=error)


@dataclass(frozen=True)
class DownloadTarget:
    """Where to fetch an image from and what to call the saved file."""
    url: str
    filename: str
