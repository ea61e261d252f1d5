"""Custom exceptions for the image transcoder."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any


class TranscoderError(Exception):
    """Base exception for all image transcoder errors."""

    error_type = "TranscoderError"


class AdmissionError(TranscoderError):
    """Error raised when an input is rejected before any decode attempt."""

    error_type = "AdmissionError"


class SizeExceededError(AdmissionError):
    """Declared size is above the upload ceiling."""

    error_type = "SizeExceeded"


class UnsupportedFormatError(AdmissionError):
    """File name has no extension or one outside the allow-list."""

    error_type = "UnsupportedFormat"


class EmptyFileError(AdmissionError):
    """File carries no bytes."""

    error_type = "EmptyFile"


class DecodeError(TranscoderError):
    """Error raised for malformed or unreadable image bytes."""

    error_type = "DecodeError"


class EncodeError(TranscoderError):
    """Error raised when the codec rejects the requested transform."""

    error_type = "EncodeError"


class ConfigurationError(TranscoderError):
    """Error raised for invalid configuration options."""

    error_type = "ConfigurationError"


class BatchError(TranscoderError):
    """Error that fails a whole batch instead of a single item."""

    error_type = "BatchError"


class BatchParseError(BatchError):
    """The request as a whole is malformed."""

    error_type = "BatchParseError"


class BatchTimeoutError(BatchError):
    """The batch did not settle before its deadline."""

    error_type = "BatchTimeout"


def error_type_of(exc: BaseException) -> str:
    """Return the reason tag reported for ``exc`` in a result record."""
    if isinstance(exc, TranscoderError):
        return exc.error_type
    return type(exc).__name__


@contextmanager
def batch_error_handler() -> Any:
    """Context manager that turns unexpected failures into ``BatchParseError``."""
    try:
        yield
    except TranscoderError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise BatchParseError(str(exc)) from exc
