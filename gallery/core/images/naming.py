"""
Object naming and filename helpers.

Object names are the original filename with a random UUID appended.
The suffix only avoids collisions between uploads of the same file; it
says nothing about the content.
"""

from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlsplit
from uuid import uuid4

DEFAULT_DOWNLOAD_FILENAME = "image"


def normalize_prefix(prefix: str) -> str:
    """Return the prefix with exactly one trailing slash ('' stays '')."""
    prefix = prefix.strip("/")
    return f"{prefix}/" if prefix else ""


def is_direct_child(prefix: str, key: str) -> bool:
    """True for prefix/name, False for prefix/dir/name, prefix/ and other/name."""
    prefix = normalize_prefix(prefix)
    if not key.startswith(prefix):
        return False
    rest = key[len(prefix):]
    return bool(rest) and "/" not in rest


def clean_filename(filename: str) -> str:
    """
    Strip any directory part a browser may have sent with the filename.

    Some browsers submit 'C:\\Users\\me\\cat.png' rather than 'cat.png'.
    """
    name = PurePosixPath(filename.replace("\\", "/")).name.strip()
    if not name:
        raise ValueError("Filename is empty")
    return name


def build_object_name(
    filename: str,
    prefix: str = "images",
    suffix: Optional[str] = None,
) -> str:
    """
    Build the storage object name for an upload.

    images/cat.png + uuid -> images/cat.png1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed
    """
    suffix = suffix if suffix is not None else str(uuid4())
    return f"{normalize_prefix(prefix)}{clean_filename(filename)}{suffix}"


def download_filename(url: str) -> str:
    """
    Suggested filename for downloading the image at `url`.

    Takes the last path segment, ignoring the query string. Providers
    that percent-encode the whole object path into one segment
    (images%2Fcat.png...) are handled by decoding first and taking the
    part after the final '/'.
    """
    path = urlsplit(url).path.rstrip("/")
    segment = unquote(path.rsplit("/", 1)[-1])
    name = segment.rsplit("/", 1)[-1]
    return name or DEFAULT_DOWNLOAD_FILENAME
