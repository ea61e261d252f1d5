"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Protocol

from .models import (
    InputItem,
    ProcessingSettings,
    ResultRecord,
    SourceMetadata,
    TransformPlan,
)


class CodecProtocol(Protocol):
    """Protocol for the image codec collaborator."""

    def decode_metadata(self, data: bytes) -> SourceMetadata:
        """Decode format and dimensions, raising DecodeError on bad bytes."""
        ...

    def encode(self, data: bytes, plan: TransformPlan) -> bytes:
        """Produce the output buffer, raising EncodeError on rejected options."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...


class ProcessingService(ABC):
    """Abstract service for processing a single item."""

    @abstractmethod
    def process_item(
        self, item: InputItem, settings: ProcessingSettings
    ) -> ResultRecord:
        """Process one item; never raises for item-level failures."""
        ...

