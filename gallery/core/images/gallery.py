"""
Gallery view-model.

Holds the gallery's UI state and implements the user-facing actions:
pick a file, upload it, load the list, delete an image, and work out
where "view" and "download" should point.

Everything the storage provider does goes through the ImageStore
protocol, so the gallery can run against R2, S3, or an in-memory store
without knowing which.
"""

import asyncio
import logging
from typing import Optional, Protocol

from .models import (
    ActionResult,
    DownloadTarget,
    GalleryState,
    ImageNotFoundError,
    ImageStoreError,
    SelectedFile,
)
from .naming import build_object_name, download_filename, is_direct_child

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ImageStore(Protocol):
    """
    Interface for the object storage holding the images.

    Implementations raise ImageStoreError (or a subclass) on failure.
    """

    async def upload_object(
        self,
        data: bytes,
        object_name: str,
        content_type: str,
    ) -> str:
        """Create or replace an object. Returns the object name."""
        ...

    async def list_objects(self, prefix: str) -> list[str]:
        """Names of the objects directly under prefix."""
        ...

    async def get_object_url(self, object_name: str) -> str:
        """Resolve an object name to a fetchable URL."""
        ...

    async def delete_object(self, object_name: str) -> None:
        """Delete an object by name."""
        ...

    def object_name_from_url(self, url: str) -> str:
        """Rebuild the object name from a URL issued by get_object_url."""
        ...


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------

class ImageGallery:
    """
    The gallery's state plus the actions that change it.

    There is no locking between actions. Two overlapping uploads both
    append; an upload and a delete can interleave freely. Each action
    awaits its own storage calls and then updates the list in one step.
    """

    def __init__(
        self,
        store: ImageStore,
        prefix: str = "images",
        state: Optional[GalleryState] = None,
    ) -> None:
        self._store = store
        self._prefix = prefix
        self.state = state if state is not None else GalleryState()

    @property
    def prefix(self) -> str:
        return self._prefix

    def select_file(self, selected: Optional[SelectedFile]) -> None:
        """
        Remember the file to upload.

        An empty selection (the picker was cancelled) keeps the previous
        file. Nothing else in the state changes.
        """
        if selected is None:
            return
        self.state.selected_file = selected

    async def upload(self) -> ActionResult:
        """
        Upload the selected file and append its URL to the list.

        With no file selected this does nothing and makes no storage call.
        """
        selected = self.state.selected_file
        if selected is None:
            return ActionResult.failure("No file selected")

        object_name = build_object_name(selected.filename, prefix=self._prefix)

        try:
            await self._store.upload_object(
                data=selected.data,
                object_name=object_name,
                content_type=selected.content_type,
            )
            url = await self._store.get_object_url(object_name)
        except ImageStoreError as e:
            logger.error(
                "Image upload failed",
                extra={"object_name": object_name, "error": str(e)},
            )
            return ActionResult.failure(str(e), object_name=object_name)

        self.state.image_urls = [*self.state.image_urls, url]
        self.state.selected_file = None

        logger.info(
            "Image uploaded",
            extra={
                "object_name": object_name,
                "size_bytes": selected.size_bytes,
            },
        )

        return ActionResult.success(url=url, object_name=object_name)

    async def load(self) -> ActionResult:
        """
        Replace the list with every image under the prefix.

        URLs are resolved concurrently and all must succeed. On any failure
        the list is left empty. The loading flag is cleared either way.
        """
        try:
            names = await self._store.list_objects(self._prefix)
            urls = await asyncio.gather(
                *(self._store.get_object_url(name) for name in names)
            )
        except ImageStoreError as e:
            logger.error(
                "Error fetching image list",
                extra={"prefix": self._prefix, "error": str(e)},
            )
            self.state.image_urls = []
            return ActionResult.failure(str(e))
        finally:
            self.state.loading = False

        self.state.image_urls = list(urls)

        logger.info(
            "Image list loaded",
            extra={"prefix": self._prefix, "count": len(urls)},
        )

        return ActionResult.success()

    async def delete(self, url: str) -> ActionResult:
        """
        Delete the image behind `url` and drop it from the list.

        Every list entry equal to `url` is removed. On failure the list is
        left exactly as it was.
        """
        try:
            object_name = self.object_name_for(url)
            await self._store.delete_object(object_name)
        except ImageStoreError as e:
            logger.error(
                "Error deleting image",
                extra={"url": url, "error": str(e)},
            )
            return ActionResult.failure(str(e), url=url)

        remaining = [u for u in self.state.image_urls if u != url]
        removed = len(self.state.image_urls) - len(remaining)
        self.state.image_urls = remaining

        logger.info(
            "Image deleted",
            extra={"object_name": object_name, "removed": removed},
        )

        return ActionResult.success(
            url=url,
            object_name=object_name,
            removed=removed,
        )

    def owns_object(self, object_name: str) -> bool:
        """True for objects the gallery lists: direct children of the prefix."""
        return is_direct_child(self._prefix, object_name)

    def object_name_for(self, url: str) -> str:
        """
        Object name behind a gallery URL.

        Raises ImageNotFoundError for URLs outside the store and for
        objects the gallery would never list.
        """
        object_name = self._store.object_name_from_url(url)
        if not self.owns_object(object_name):
            raise ImageNotFoundError(f"Not a gallery image: {url}")
        return object_name

    def view_target(self, url: str) -> str:
        """URL to open in a new tab."""
        return url

    def download_target(self, url: str) -> DownloadTarget:
        """URL plus the filename to suggest when saving it."""
        return DownloadTarget(url=url, filename=download_filename(url))
