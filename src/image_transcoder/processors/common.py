"""Common functions shared across all processor implementations."""

import math
import time
from concurrent.futures import Executor, wait
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..core import (
    InputItem,
    ProcessingSettings,
    ResultRecord,
    get_logger,
)
from ..core.config import get_settings
from ..core.error_handling import BatchOperationContextManager
from ..core.exceptions import BatchTimeoutError
from ..core.models import BatchSummary
from ..core.observability import MetricsCollector, StructuredLogger
from ..core.services import (
    ImageTranscodeService,
    compute_percentage_saved,
    error_record,
)

ProcessBatchFunction = Callable[..., List[ResultRecord]]


def create_default_service(
    metrics_collector: Optional[MetricsCollector] = None,
) -> ImageTranscodeService:
    """Build a Pillow-backed service configured from the environment."""
    settings = get_settings()
    return ImageTranscodeService(
        logger=StructuredLogger(get_logger("processor")),
        metrics_collector=metrics_collector,
        max_file_size=settings.max_file_size,
        include_original_payload=settings.include_original_payload,
    )


def collect_in_order(
    executor: Executor,
    fn: Callable[..., ResultRecord],
    calls: Sequence[Tuple[Any, ...]],
    batch: List[InputItem],
    settings: ProcessingSettings,
    timeout: Optional[float] = None,
) -> List[ResultRecord]:
    """
    Submit one call per item and wait for every one of them to settle.

    Results are placed by input index, so completion order never leaks into
    the output. A worker that raises still yields an error record for its
    item. If the deadline passes first, pending work is cancelled and the
    whole batch fails with ``BatchTimeoutError``.
    """
    future_to_index = {
        executor.submit(fn, *args): index for index, args in enumerate(calls)
    }
    done, not_done = wait(future_to_index, timeout=timeout)

    if not_done:
        for future in not_done:
            future.cancel()
        raise BatchTimeoutError(
            f"Batch did not complete within {timeout}s "
            f"({len(not_done)} of {len(batch)} item(s) pending)"
        )

    results: List[Optional[ResultRecord]] = [None] * len(batch)
    for future in done:
        index = future_to_index[future]
        try:
            results[index] = future.result()
        except Exception as e:  # noqa: BLE001
            results[index] = error_record(batch[index], settings, e)

    return results  # type: ignore[return-value]


def summarize_results(
    results: List[ResultRecord], processing_time: float = 0.0
) -> BatchSummary:
    """Aggregate counts and byte totals for a finished batch."""
    successful = [r for r in results if r.success]
    total_original = sum(r.original_size for r in successful)
    total_processed = sum(r.processed_size for r in successful)
    saved = 0
    if total_original > 0:
        saved = compute_percentage_saved(total_original, total_processed)

    return BatchSummary(
        total_items=len(results),
        processed_count=len(successful),
        error_count=len(results) - len(successful),
        total_original_size=total_original,
        total_processed_size=total_processed,
        percentage_saved=saved,
        processing_time=processing_time,
    )


def output_filename(record: ResultRecord) -> str:
    """Name a processed file ``<first name segment>.<processed format>``."""
    return f"{record.original_name.split('.')[0]}.{record.processed_format}"


def format_file_size(num_bytes: int) -> str:
    """Render a byte count as Bytes / KB / MB / GB with two decimals."""
    if num_bytes == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while i < len(units) - 1 and num_bytes >= 1024 ** (i + 1):
        i += 1
    value = round(num_bytes / math.pow(1024, i), 2)
    return f"{value:g} {units[i]}"


def log_configuration(settings: ProcessingSettings, processor_name: str, item_count: int):
    """Log processing configuration."""
    logger = get_logger("processor")
    logger.info("=" * 80)
    logger.info(f"{processor_name.upper()} IMAGE TRANSCODER")
    logger.info("=" * 80)
    logger.info("PROCESSING OPTIONS:")
    logger.info(f"  Target format:     {settings.target_format.value}")
    logger.info(f"  Quality:           {settings.quality}")
    if settings.resize and (settings.resize.width or settings.resize.height):
        logger.info(
            f"  Resize:            {settings.resize.width or '-'}x"
            f"{settings.resize.height or '-'} ({settings.resize.mode.value})"
        )
    else:
        logger.info("  Resize:            None")
    logger.info(f"  Preserve metadata: {settings.preserve_metadata}")
    logger.info(f"  Lossless:          {settings.lossless}")
    logger.info(f"  Effort:            {'default' if settings.effort is None else settings.effort}")
    logger.info(f"  Items:             {item_count}")
    logger.info("=" * 80)


def log_final_statistics(summary: BatchSummary):
    """Log final processing statistics."""
    logger = get_logger("processor")
    rate = summary.total_items / summary.processing_time if summary.processing_time > 0 else 0

    logger.info("=" * 80)
    logger.info("PROCESSING COMPLETED")
    logger.info("=" * 80)
    logger.info(f"Total execution time: {summary.processing_time:.1f}s")
    logger.info(f"Overall processing rate: {rate:.1f} items/sec")
    logger.info(f"Successfully processed: {summary.processed_count}")
    logger.info(f"Errors encountered: {summary.error_count}")
    logger.info(
        f"Size: {format_file_size(summary.total_original_size)} -> "
        f"{format_file_size(summary.total_processed_size)} "
        f"({summary.percentage_saved}% saved)"
    )
    logger.info("=" * 80)


def log_metrics_summary(metrics_collector: MetricsCollector) -> None:
    """Log per-item timings, byte totals and failures by error type."""
    summary = metrics_collector.get_summary("process_item")
    if not summary:
        return
    logger = get_logger("processor")
    logger.info(
        f"Item timings: avg {summary['avg_duration'] * 1000:.1f}ms, "
        f"max {summary['max_duration'] * 1000:.1f}ms over {summary['total_operations']} item(s)"
    )
    logger.info(
        f"Bytes: {format_file_size(summary['bytes_in'])} in, "
        f"{format_file_size(summary['bytes_out'])} out"
    )
    if summary["errors_by_type"]:
        errors_by_type = sorted(summary["errors_by_type"].items())
        breakdown = ", ".join(f"{name}={count}" for name, count in errors_by_type)
        logger.info(f"Failures by type: {breakdown}")


def record_batch_errors(
    results: List[ResultRecord], batch_manager: BatchOperationContextManager
) -> None:
    for result in results:
        if not result.success:
            batch_manager.add_error(
                item_identifier=result.original_name,
                error_message=result.error or "Unknown error",
            )


def run_batch(
    items: List[InputItem],
    settings: ProcessingSettings,
    processor_name: str,
    process_batch_fn: ProcessBatchFunction,
    service: Optional[ImageTranscodeService] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Tuple[List[ResultRecord], BatchSummary]:
    """
    Run one batch with the given strategy and log its outcome.

    When no service is given, the default service records per-item metrics
    that are logged with the final statistics. Multiprocess workers build
    their own services, so their metrics stay in the worker processes.

    Returns:
        The ordered result records and the batch summary

    Raises:
        BatchTimeoutError: if ``timeout`` elapses before every item settles
    """
    logger = get_logger("processor")
    log_configuration(settings, processor_name, len(items))
    metrics_collector = MetricsCollector()
    if service is None:
        service = create_default_service(metrics_collector)
    start_time = time.time()

    with BatchOperationContextManager(
        operation_name=f"Image transcoding via {processor_name}"
    ) as batch_manager:
        results = process_batch_fn(
            items,
            settings,
            service=service,
            max_workers=max_workers,
            timeout=timeout,
        )
        record_batch_errors(results, batch_manager)

    summary = summarize_results(results, time.time() - start_time)
    if summary.error_count:
        logger.warning(
            f"Completed batch. Processed: {summary.processed_count}, errors: {summary.error_count}."
        )
    log_final_statistics(summary)
    log_metrics_summary(metrics_collector)
    return results, summary
