"""Tests for upload validation and naming helpers."""

import pytest

from gitshelf.core.errors import ValidationError
from gitshelf.core.validation import (
    content_md5,
    file_extension,
    is_content_path,
    object_path,
    size_text,
    validate_extension,
    validate_file_name,
    validate_size
)


ALLOWED = [".png", ".jpg", ".gif"]


class TestExtensions:
    """Test extension handling."""

    def test_extension_is_lower_cased(self):
        assert file_extension("Photo.PNG") == ".png"
        assert file_extension("archive.tar.gz") == ".gz"
        assert file_extension("README") == ""

    def test_allowed_extension_returned(self):
        assert validate_extension("cat.JPG", ALLOWED) == ".jpg"

    def test_disallowed_extension_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_extension("notes.txt", ALLOWED)
        assert ".png, .jpg, .gif" in str(exc_info.value)

    def test_missing_extension_rejected(self):
        with pytest.raises(ValidationError):
            validate_extension("Makefile", ALLOWED)


class TestSizeAndNames:
    """Test size limits, display names and size text."""

    def test_size_at_limit_accepted(self):
        validate_size(2 * 1024 * 1024, 2 * 1024 * 1024)

    def test_size_over_limit_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_size(2 * 1024 * 1024 + 1, 2 * 1024 * 1024)
        assert "2.00 MB" in str(exc_info.value)

    def test_file_name_is_stripped(self):
        assert validate_file_name("  holiday.png ") == "holiday.png"

    @pytest.mark.parametrize("name", ["", "   ", None, "a\nb", "x" * 256])
    def test_invalid_file_names(self, name):
        with pytest.raises(ValidationError):
            validate_file_name(name)

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.50 KB"),
        (2 * 1024 * 1024, "2.00 MB"),
        (3 * 1024 ** 3, "3.00 GB"),
        (2048 * 1024 ** 4, "2048.00 TB"),
    ])
    def test_size_text(self, size, expected):
        assert size_text(size) == expected


class TestContentPaths:
    """Test content addressing."""

    def test_object_path_layout(self):
        md5 = content_md5(b"hello")
        assert md5 == "5d41402abc4b2a76b9719d911017c592"
        assert object_path(md5, ".png") == "5d/5d41402abc4b2a76b9719d911017c592.png"

    def test_content_path_recognized(self):
        assert is_content_path("5d/5d41402abc4b2a76b9719d911017c592.png")
        assert is_content_path("5d/5d41402abc4b2a76b9719d911017c592")

    @pytest.mark.parametrize("path", [
        "database.json",
        "README.md",
        "ab/5d41402abc4b2a76b9719d911017c592.png",
        "5d/5d41402abc4b2a76b9719d911017c59.png",
        "docs/5d/5d41402abc4b2a76b9719d911017c592.png",
    ])
    def test_other_paths_rejected(self, path):
        assert not is_content_path(path)
