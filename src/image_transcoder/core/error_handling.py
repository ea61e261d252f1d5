# src/image_transcoder/core/error_handling.py

import functools
import logging

from PIL import Image, UnidentifiedImageError as PILUnidentifiedImageError

from .exceptions import TranscoderError

# Failures Pillow raises for unreadable input or rejected save options.
CODEC_FAILURES = (
    PILUnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
    KeyError,
    TypeError,
)


def with_error_handling(error_cls, action="process image"):
    """
    A decorator factory to wrap codec functions with standardized error handling.

    Pillow failures are logged and re-raised as ``error_cls``; errors that are
    already ``TranscoderError`` pass through unchanged.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            try:
                return func(*args, **kwargs)
            except TranscoderError:
                raise
            except CODEC_FAILURES as e:
                logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"Failed to {action}: {e}") from e
        return wrapper
    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """
    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logging.getLogger(self.__class__.__module__ + '.' + self.__class__.__name__)

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                item_identifier = error_detail.get('item', 'Unknown item')
                error_message = error_detail.get('error', 'Unknown error')
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item '{item_identifier}': {error_message}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress: batch-level failures must reach the caller.
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item within the 'with' block.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed (e.g., filename).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")
