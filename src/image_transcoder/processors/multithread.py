"""Multithreaded processor implementation - uses thread pool for parallelism."""

from typing import List, Optional
from concurrent.futures import ThreadPoolExecutor

from ..core import InputItem, ProcessingSettings, ResultRecord
from ..core.services import ImageTranscodeService
from .common import collect_in_order, create_default_service

DEFAULT_MAX_WORKERS = 8


def process_batch(
    batch: List[InputItem],
    settings: ProcessingSettings,
    service: Optional[ImageTranscodeService] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[ResultRecord]:
    """
    Process a batch of images using multithreading.

    Pillow releases the GIL while decoding and encoding, so threads give
    real parallelism for codec work.

    Args:
        batch: List of items to process
        settings: Processing settings shared by every item
        service: Per-item service (stateless, safe to share across threads)
        max_workers: Upper bound on concurrent codec invocations
        timeout: Optional deadline in seconds for the whole batch

    Returns:
        List of processing results in input order
    """
    if not batch:
        return []

    service = service or create_default_service()
    workers = min(max_workers or DEFAULT_MAX_WORKERS, len(batch))
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        return collect_in_order(
            executor,
            service.process_item,
            [(item, settings) for item in batch],
            batch,
            settings,
            timeout,
        )
    finally:
        # Do not block on stragglers after a timeout.
        executor.shutdown(wait=False, cancel_futures=True)
