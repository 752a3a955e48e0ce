#!/usr/bin/env python3
"""
Upload a local folder of images into the gallery bucket.

Each file goes through the same upload path as the web UI, so objects
get the usual filename + random suffix names.

Usage:
    python scripts/seed_images.py ./photos
    python scripts/seed_images.py ./photos --dry-run

Requires:
    - the package installed (pip install -e .)
    - .env file with storage credentials (STORAGE_ACCESS_KEY_ID, ...)
"""

import asyncio
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from gallery.api.dependencies import get_storage_client  # noqa: E402
from gallery.config.settings import get_settings  # noqa: E402
from gallery.core.images import ImageGallery, SelectedFile  # noqa: E402


def find_images(folder: Path, allowed_types: list[str]) -> list[tuple[Path, str]]:
    """
    Collect files in folder whose guessed content type is allowed.

    Returns (path, content_type) pairs sorted by filename. Subfolders are
    not descended into.
    """
    found = []

    for path in sorted(folder.iterdir()):
        if not path.is_file():
            continue

        content_type, _ = mimetypes.guess_type(path.name)
        if content_type is None or content_type.lower() not in allowed_types:
            continue

        found.append((path, content_type.lower()))

    return found


async def upload_images(images: list[tuple[Path, str]], dry_run: bool = False) -> bool:
    """Upload each image, printing one line per file. Returns True if all succeeded."""
    settings = get_settings()

    if dry_run:
        print("\n=== DRY RUN - Nothing will be uploaded ===\n")
        for path, content_type in images:
            print(f"Would upload: {path.name} ({content_type}, {path.stat().st_size} bytes)")
        print(f"\nTotal: {len(images)} images")
        return True

    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        return False

    gallery = ImageGallery(
        store=get_storage_client(settings),
        prefix=settings.image_prefix,
    )

    uploaded = 0
    errors = 0

    for path, content_type in images:
        data = path.read_bytes()

        if len(data) > settings.max_upload_size_bytes:
            errors += 1
            print(f"[ERR] Skipped {path.name}: larger than {settings.max_upload_size_mb}MB")
            continue

        gallery.select_file(SelectedFile(
            filename=path.name,
            data=data,
            content_type=content_type,
        ))
        result = await gallery.upload()

        if result.ok:
            uploaded += 1
            print(f"[OK] {path.name} -> {result.url}")
        else:
            errors += 1
            print(f"[ERR] {path.name}: {result.error}")

    print("\n=== Upload Complete ===")
    print(f"Uploaded: {uploaded}")
    print(f"Errors: {errors}")

    return errors == 0


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Upload a folder of images to the gallery bucket')
    parser.add_argument('folder', help='Folder containing images')
    parser.add_argument('--dry-run', action='store_true', help='List files only, don\'t upload')
    args = parser.parse_args()

    folder = Path(args.folder)
    if not folder.is_dir():
        print(f"ERROR: Not a folder: {folder}")
        sys.exit(1)

    settings = get_settings()
    images = find_images(folder, settings.allowed_image_types_list)
    print(f"Found {len(images)} images in {folder}")

    if not images:
        print("ERROR: No images with an allowed content type found")
        sys.exit(1)

    success = asyncio.run(upload_images(images, dry_run=args.dry_run))

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
