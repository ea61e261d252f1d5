"""AsyncIO processor implementation - uses async/await over a bounded thread pool."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..core import InputItem, ProcessingSettings, ResultRecord, get_logger
from ..core.exceptions import BatchTimeoutError
from ..core.services import ImageTranscodeService, error_record
from .common import create_default_service

DEFAULT_MAX_WORKERS = 8


async def process_item_async(
    service: ImageTranscodeService,
    item: InputItem,
    settings: ProcessingSettings,
    executor: ThreadPoolExecutor,
) -> ResultRecord:
    """Process a single item off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, service.process_item, item, settings)


async def process_batch_async(
    batch: List[InputItem],
    settings: ProcessingSettings,
    service: Optional[ImageTranscodeService] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[ResultRecord]:
    """
    Process a batch concurrently and settle every item before returning.

    Raises:
        BatchTimeoutError: if ``timeout`` elapses before every item settles
    """
    if not batch:
        return []

    logger = get_logger("asyncio-processor")
    service = service or create_default_service()
    workers = min(max_workers or DEFAULT_MAX_WORKERS, len(batch))
    executor = ThreadPoolExecutor(max_workers=workers)

    try:
        tasks = [
            process_item_async(service, item, settings, executor) for item in batch
        ]

        # Wait for all tasks to complete; one failure never cancels siblings
        try:
            results = await asyncio.wait_for(
                asyncio.gather(*tasks, return_exceptions=True), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error(f"Batch of {len(batch)} item(s) timed out after {timeout}s")
            raise BatchTimeoutError(
                f"Batch did not complete within {timeout}s"
            ) from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    # Convert exceptions to ResultRecord objects
    processed_results: List[ResultRecord] = []
    for i, result in enumerate(results):
        if isinstance(result, Exception):
            processed_results.append(error_record(batch[i], settings, result))
        else:
            processed_results.append(result)

    return processed_results


def process_batch(
    batch: List[InputItem],
    settings: ProcessingSettings,
    service: Optional[ImageTranscodeService] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[ResultRecord]:
    """
    Process a batch of images using asyncio.

    This is the synchronous wrapper that runs the async function; callers
    already inside an event loop should await `process_batch_async`.
    """
    return asyncio.run(
        process_batch_async(
            batch, settings, service=service, max_workers=max_workers, timeout=timeout
        )
    )
