"""
Unit tests for the gallery domain models and naming helpers.

These tests verify the core logic without touching external services
(no storage calls, no HTTP, no file system).
"""

import pytest

from gallery.core.images.models import (
    ActionResult,
    GalleryState,
    SelectedFile,
)
from gallery.core.images.naming import (
    build_object_name,
    clean_filename,
    download_filename,
    is_direct_child,
    normalize_prefix,
)


# ---------------------------------------------------------------------------
# SelectedFile and GalleryState Tests
# ---------------------------------------------------------------------------

class TestSelectedFile:
    """Tests for the SelectedFile value object."""

    def test_size_is_byte_length(self):
        selected = SelectedFile(filename="cat.png", data=b"12345")
        assert selected.size_bytes == 5

    def test_rejects_blank_filename(self):
        with pytest.raises(ValueError, match="filename"):
            SelectedFile(filename="  ", data=b"x")

    def test_defaults_to_octet_stream(self):
        selected = SelectedFile(filename="cat.png", data=b"x")
        assert selected.content_type == "application/octet-stream"


class TestGalleryState:
    """Tests for the gallery UI state."""

    def test_new_state_is_loading_and_empty(self):
        state = GalleryState()

        assert state.loading
        assert state.image_urls == []
        assert state.selected_file is None
        assert state.selected_filename is None

    def test_selected_filename_follows_selected_file(self):
        state = GalleryState(selected_file=SelectedFile(filename="dog.jpg", data=b"x"))
        assert state.selected_filename == "dog.jpg"

    def test_states_do_not_share_lists(self):
        first = GalleryState()
        second = GalleryState()

        first.image_urls.append("https://example.com/a.png")

        assert second.image_urls == []


class TestActionResult:
    """Tests for structured action outcomes."""

    def test_success_has_no_error(self):
        result = ActionResult.success(url="u", object_name="images/a", removed=2)

        assert result.ok
        assert result.error is None
        assert result.removed == 2

    def test_failure_carries_error(self):
        result = ActionResult.failure("boom", url="u")

        assert not result.ok
        assert result.error == "boom"
        assert result.url == "u"
        assert result.removed == 0


# ---------------------------------------------------------------------------
# Naming Tests
# ---------------------------------------------------------------------------

class TestObjectNaming:
    """Tests for object names derived from uploaded filenames."""

    def test_name_is_prefix_filename_and_suffix(self):
        name = build_object_name("cat.png", prefix="images", suffix="-abc")
        assert name == "images/cat.png-abc"

    def test_default_suffix_is_a_uuid(self):
        name = build_object_name("cat.png")

        assert name.startswith("images/cat.png")
        # str(uuid4()) is 36 characters
        assert len(name) == len("images/cat.png") + 36

    def test_two_uploads_of_same_file_get_different_names(self):
        assert build_object_name("cat.png") != build_object_name("cat.png")

    def test_prefix_slashes_are_normalized(self):
        assert build_object_name("a.png", prefix="/images/", suffix="1") == "images/a.png1"

    def test_empty_prefix_puts_object_at_root(self):
        assert build_object_name("a.png", prefix="", suffix="1") == "a.png1"

    def test_browser_paths_are_stripped(self):
        assert clean_filename("C:\\Users\\me\\cat.png") == "cat.png"
        assert clean_filename("photos/cat.png") == "cat.png"

    def test_empty_filename_is_rejected(self):
        with pytest.raises(ValueError):
            clean_filename("")

    def test_normalize_prefix(self):
        assert normalize_prefix("images") == "images/"
        assert normalize_prefix("images//") == "images/"
        assert normalize_prefix("") == ""


class TestDownloadFilename:
    """Tests for the suggested download filename."""

    def test_uses_last_path_segment(self):
        url = "https://cdn.example.com/images/cat.png1234"
        assert download_filename(url) == "cat.png1234"

    def test_ignores_query_string(self):
        url = "https://cdn.example.com/images/cat.png?v=2&token=abc"
        assert download_filename(url) == "cat.png"

    def test_decodes_encoded_object_path(self):
        # Providers like Firebase put the whole object path in one segment
        url = "https://firebasestorage.googleapis.com/v0/b/app/o/images%2Fcat.png?alt=media"
        assert download_filename(url) == "cat.png"

    def test_decodes_percent_escapes(self):
        url = "https://cdn.example.com/images/my%20cat.png"
        assert download_filename(url) == "my cat.png"

    def test_falls_back_when_there_is_no_segment(self):
        assert download_filename("https://cdn.example.com/") == "image"


class TestDirectChild:
    """Tests for the prefix membership check used by listing and deletes."""

    def test_direct_child_is_accepted(self):
        assert is_direct_child("images", "images/a.png")

    def test_nested_and_foreign_keys_are_rejected(self):
        assert not is_direct_child("images", "images/sub/a.png")
        assert not is_direct_child("images", "backups/db.sql")
        assert not is_direct_child("images", "images-old/a.png")

    def test_folder_marker_is_rejected(self):
        assert not is_direct_child("images/", "images/")

    def test_empty_prefix_means_bucket_root(self):
        assert is_direct_child("", "a.png")
        assert not is_direct_child("", "images/a.png")
