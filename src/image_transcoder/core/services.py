"""Per-item transcoding service."""

import math
import time
from dataclasses import dataclass, field
from typing import Optional

from .codec import PillowCodec, to_data_url
from .config import MAX_FILE_SIZE
from .exceptions import error_type_of
from .models import InputItem, ProcessingSettings, ResultRecord
from .observability import LogContext, MetricsCollector, PerformanceMetrics
from .planner import build_plan
from .protocols import CodecProtocol, LoggerProtocol, ProcessingService
from .validation import validate_item


def compute_percentage_saved(original_size: int, processed_size: int) -> int:
    """
    Signed percentage of bytes saved, rounded half up.

    A larger output yields a negative value; the result is not clamped.

    Raises:
        ValueError: if ``original_size`` is not positive
    """
    if original_size <= 0:
        raise ValueError("Cannot compute savings for an empty original")
    ratio = (original_size - processed_size) * 100 / original_size
    return math.floor(ratio + 0.5)


def error_record(
    item: InputItem, settings: ProcessingSettings, exc: BaseException
) -> ResultRecord:
    """Build the failure record reported for ``item``."""
    return ResultRecord(
        original_name=item.name,
        original_size=item.declared_size,
        original_format="unknown",
        processed_size=0,
        processed_format=settings.target_format.value,
        processed_data_url="",
        percentage_saved=0,
        error=str(exc) or "Processing failed",
        error_type=error_type_of(exc),
    )


@dataclass
class ProcessingContext:
    """Context for one item's pipeline run."""

    correlation_id: str
    start_time: float = field(default_factory=time.time)
    log_context: LogContext = field(default_factory=LogContext)


class ImageTranscodeService(ProcessingService):
    """Runs validate, decode, plan, encode and measure for a single item."""

    def __init__(
        self,
        codec: Optional[CodecProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        max_file_size: int = MAX_FILE_SIZE,
        include_original_payload: bool = True,
    ):
        self._codec = codec or PillowCodec()
        self._logger = logger
        self._metrics_collector = metrics_collector
        self._max_file_size = max_file_size
        self._include_original_payload = include_original_payload

    def _log(self, level: str, message: str, context: LogContext, **kwargs) -> None:
        if self._logger is not None:
            getattr(self._logger, level)(message, context, **kwargs)

    def process_item(
        self, item: InputItem, settings: ProcessingSettings
    ) -> ResultRecord:
        """Process a single item; item-level failures become error records."""
        correlation_id = f"img_{item.name}_{int(time.time() * 1000)}"
        log_context = LogContext(
            correlation_id=correlation_id,
            operation="process_item",
            component="image_transcode_service",
        ).with_metadata(
            original_name=item.name,
            target_format=settings.target_format.value,
        )
        context = ProcessingContext(
            correlation_id=correlation_id, log_context=log_context
        )

        try:
            validate_item(item, self._max_file_size)

            self._log("debug", "Decoding metadata", log_context.with_operation("decode"))
            original_size = len(item.data)
            source = self._codec.decode_metadata(item.data)

            plan = build_plan(source, settings)
            self._log(
                "debug",
                "Encoding image",
                log_context.with_operation("encode"),
                resize=plan.should_resize,
                encoder=plan.encoder.kind,
            )
            processed = self._codec.encode(item.data, plan)

            processed_size = len(processed)
            percentage_saved = compute_percentage_saved(original_size, processed_size)
            final = self._codec.decode_metadata(processed)

            result = ResultRecord(
                original_name=item.name,
                original_size=original_size,
                original_format=source.format,
                processed_size=processed_size,
                processed_format=settings.target_format.value,
                percentage_saved=percentage_saved,
                width=final.width,
                height=final.height,
                original_data_url=(
                    to_data_url(item.data, source.format)
                    if self._include_original_payload
                    else None
                ),
                processed_data_url=to_data_url(
                    processed, settings.target_format.value
                ),
            )
            result.processing_time = time.time() - context.start_time
            self._log(
                "info",
                "Successfully processed image",
                log_context,
                processing_time_ms=result.processing_time * 1000,
                percentage_saved=percentage_saved,
            )

        except Exception as e:  # noqa: BLE001
            result = error_record(item, settings, e)
            result.processing_time = time.time() - context.start_time
            self._log(
                "error",
                "Image processing failed",
                log_context.with_metadata(error=str(e), error_type=result.error_type),
            )

        if self._metrics_collector is not None:
            self._metrics_collector.record_metric(
                PerformanceMetrics(
                    operation="process_item",
                    start_time=context.start_time,
                    end_time=context.start_time + result.processing_time,
                    success=result.success,
                    error_message=result.error,
                    metadata={
                        "original_name": item.name,
                        "target_format": result.processed_format,
                        "bytes_in": result.original_size,
                        "bytes_out": result.processed_size,
                        "error_type": result.error_type,
                    },
                )
            )

        return result
