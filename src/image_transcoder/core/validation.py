"""Admission checks performed before any codec work."""

from typing import FrozenSet, Optional

from .config import MAX_FILE_SIZE
from .exceptions import (
    AdmissionError,
    EmptyFileError,
    SizeExceededError,
    UnsupportedFormatError,
)
from .models import InputItem

SUPPORTED_INPUT_FORMATS: FrozenSet[str] = frozenset(
    {"jpeg", "jpg", "png", "webp", "gif", "avif", "tiff", "tif", "svg", "heif"}
)


def file_extension(name: str) -> Optional[str]:
    """
    Return the lowercased extension of ``name`` or ``None`` when it has none.

    Only the text after the last dot counts, so ``archive.tar.gz`` yields
    ``gz`` and ``.png`` (a dotfile) yields ``png``.
    """
    if "." not in name:
        return None
    ext = name.rsplit(".", 1)[-1].lower()
    return ext or None


def validate_item(item: InputItem, max_size: int = MAX_FILE_SIZE) -> None:
    """
    Admit an item or raise the reason it was rejected.

    The format check looks at the file name only; a file whose bytes do not
    match its extension is admitted here and fails later at decode.

    Raises:
        SizeExceededError: declared size or payload length is above ``max_size``
        UnsupportedFormatError: extension missing or not in the allow-list
        EmptyFileError: the buffer carries no bytes
    """
    if max(item.declared_size, len(item.data)) > max_size:
        raise SizeExceededError(
            f"File size exceeds {max_size // (1024 * 1024)}MB limit"
        )

    ext = file_extension(item.name)
    if ext is None or ext not in SUPPORTED_INPUT_FORMATS:
        raise UnsupportedFormatError(f"Unsupported file format: {ext}")

    if not item.data:
        raise EmptyFileError(f"File is empty: {item.name}")


def admission_reason(item: InputItem, max_size: int = MAX_FILE_SIZE) -> Optional[str]:
    """Return the rejection reason tag for ``item``, or ``None`` if admitted."""
    try:
        validate_item(item, max_size)
    except AdmissionError as exc:
        return exc.error_type
    return None
