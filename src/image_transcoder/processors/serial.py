"""Serial processor implementation - processes images one by one."""

import time
from typing import List, Optional

from ..core import InputItem, ProcessingSettings, ResultRecord
from ..core.exceptions import BatchTimeoutError
from ..core.services import ImageTranscodeService
from .common import create_default_service


def process_batch(
    batch: List[InputItem],
    settings: ProcessingSettings,
    service: Optional[ImageTranscodeService] = None,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[ResultRecord]:
    """
    Processes a batch of images serially, one by one, in the current thread.

    Args:
        batch: A list of `InputItem` objects to process.
        settings: `ProcessingSettings` shared by every item.
        service: Per-item service; a Pillow-backed default is built if omitted.
        max_workers: Unused, accepted for a uniform processor signature.
        timeout: Optional deadline in seconds for the whole batch. The
            deadline is checked between items; a running item is not
            interrupted.

    Returns:
        A list of `ResultRecord` objects in input order.

    Raises:
        BatchTimeoutError: if the deadline passes before the last item.
    """
    service = service or create_default_service()
    deadline = time.monotonic() + timeout if timeout else None
    results = []

    for item in batch:
        if deadline is not None and time.monotonic() > deadline:
            raise BatchTimeoutError(
                f"Batch did not complete within {timeout}s "
                f"({len(batch) - len(results)} of {len(batch)} item(s) pending)"
            )
        results.append(service.process_item(item, settings))

    return results
