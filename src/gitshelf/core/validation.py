"""Pure validation and naming helpers for uploads."""

import hashlib
import posixpath
import re
from typing import Iterable

from .errors import ValidationError


CONTENT_PATH_PATTERN = re.compile(r"^([0-9a-f]{2})/(\1[0-9a-f]{30})(\.[0-9a-z]+)?$")
MAX_FILE_NAME_LENGTH = 255

_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, or an empty string."""
    return posixpath.splitext(file_name.replace("\\", "/"))[1].lower()


def validate_extension(file_name: str, allowed_extensions: Iterable[str]) -> str:
    """Return the extension of ``file_name`` if it is allowed.

    Raises:
        ValidationError: If the extension is not in ``allowed_extensions``
    """
    allowed = list(allowed_extensions)
    ext = file_extension(file_name)
    if ext not in allowed:
        raise ValidationError(f"Only the following formats are supported: {', '.join(allowed)}")
    return ext


def validate_size(size: int, max_file_size: int) -> None:
    if size > max_file_size:
        raise ValidationError(f"Files larger than {size_text(max_file_size)} are not supported")


def validate_file_name(name: str) -> str:
    """Normalize a display name for rename.

    Raises:
        ValidationError: If the name is blank, too long or spans several lines
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("File name must not be empty")
    if len(name) > MAX_FILE_NAME_LENGTH:
        raise ValidationError(f"File name must be at most {MAX_FILE_NAME_LENGTH} characters")
    if "\n" in name or "\r" in name:
        raise ValidationError("File name must be a single line")
    return name


def content_md5(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


def object_path(file_md5: str, ext: str) -> str:
    """Remote path of a content object: ``<md5[0:2]>/<md5><ext>``."""
    return f"{file_md5[:2]}/{file_md5}{ext}"


def is_content_path(path: str) -> bool:
    return CONTENT_PATH_PATTERN.match(path) is not None


def size_text(size: int) -> str:
    """Human readable size, e.g. ``512 B``, ``1.50 KB``, ``2.00 MB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{value:.2f} {unit}"
