"""
Local upload checks shared by the issuer and the transfer executor.

Everything here is synchronous and touches no network, so invalid input is
rejected before a credential is minted or a byte is sent.
"""
import re
from typing import Optional

from app.errors import FileTooLargeError, UnsupportedTypeError, ValidationError

IMAGE_CONTENT_TYPE_PREFIX = "image/"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

DEFAULT_FILENAME_STEM = "file"


def validate_image_upload(size: int, content_type: str, max_size: int) -> None:
    """
    Raise a ValidationError subclass unless the upload is an image within
    the size limit.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValidationError("File size must be a positive integer")
    if size > max_size:
        raise FileTooLargeError(size, max_size)
    if not content_type or not content_type.lower().startswith(IMAGE_CONTENT_TYPE_PREFIX):
        raise UnsupportedTypeError(content_type)


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client-supplied filename to a safe key component.
    
    Drops any directory part and replaces runs of characters outside
    ``[A-Za-z0-9._-]`` in the stem with a single dash. The extension is kept
    apart so it survives; a stem with nothing safe left becomes ``file``
    (``東京.jpg`` -> ``file.jpg``).
    """
    if not filename or not filename.strip():
        raise ValidationError("Filename is required")
    
    name = filename.replace("\\", "/").rsplit("/", 1)[-1].strip()
    if not name:
        raise ValidationError(f"Invalid filename: {filename!r}")
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    
    stem = _UNSAFE_CHARS.sub("-", stem).strip("-.")
    ext = _UNSAFE_CHARS.sub("", ext).strip(".")
    stem = stem or DEFAULT_FILENAME_STEM
    return f"{stem}.{ext}" if ext else stem


def sanitize_folder(folder: Optional[str]) -> Optional[str]:
    """
    Normalize an optional folder path. Returns None for an empty folder.
    
    Nested folders are allowed; ``..`` segments are not.
    """
    if folder is None:
        return None
    
    segments = [s for s in folder.replace("\\", "/").split("/") if s]
    if any(s == ".." for s in segments):
        raise ValidationError(f"Invalid folder: {folder!r}")
    
    cleaned = [_UNSAFE_CHARS.sub("-", s).strip("-") for s in segments]
    cleaned = [s for s in cleaned if s]
    return "/".join(cleaned) or None
