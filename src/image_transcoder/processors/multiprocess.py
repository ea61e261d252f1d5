"""Multiprocess processor implementation - uses process pool for parallelism."""

from typing import List, Optional, Tuple
from concurrent.futures import ProcessPoolExecutor

from ..core import (
    InputItem,
    ProcessingSettings,
    ResultRecord,
    configure_multiprocessing_logging,
)
from ..core.services import ImageTranscodeService
from .common import collect_in_order, create_default_service

DEFAULT_MAX_WORKERS = 4


def process_item_worker(args: Tuple[InputItem, ProcessingSettings]) -> ResultRecord:
    """
    Worker function designed for use with a `ProcessPoolExecutor`.

    It configures logging for the current process, builds a service from
    the environment and runs the per-item pipeline.

    Args:
        args: A tuple `(item: InputItem, settings: ProcessingSettings)`.

    Returns:
        A `ResultRecord` object detailing the outcome.
    """
    item, settings = args
    configure_multiprocessing_logging()
    return create_default_service().process_item(item, settings)


def process_batch(
    batch: List[InputItem],
    settings: ProcessingSettings,
    service: Optional[ImageTranscodeService] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[ResultRecord]:
    """
    Processes a batch of images using a `ProcessPoolExecutor` for parallelism.

    Args:
        batch: A list of `InputItem` objects to process.
        settings: `ProcessingSettings` shared by every item.
        service: Unused; each worker process builds its own service, since
            injected codecs and loggers are not guaranteed to be picklable.
        max_workers: Upper bound on worker processes.
        timeout: Optional deadline in seconds for the whole batch.

    Returns:
        A list of `ResultRecord` objects in input order.
    """
    if not batch:
        return []

    workers = min(max_workers or DEFAULT_MAX_WORKERS, len(batch))
    executor = ProcessPoolExecutor(max_workers=workers)
    try:
        return collect_in_order(
            executor,
            process_item_worker,
            [((item, settings),) for item in batch],
            batch,
            settings,
            timeout,
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
