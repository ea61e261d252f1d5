"""
FastAPI layer exposing the batch transcoder.

Endpoints:
 - GET /health
 - POST /process
"""

from __future__ import annotations

import json
from typing import Any, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from . import __version__
from .core import (
    BatchParseError,
    BatchTimeoutError,
    InputItem,
    ProcessingSettings,
    batch_error_handler,
)
from .core.config import get_settings
from .core.error_handling import BatchOperationContextManager
from .core.logging_config import setup_logger, silence_noisy_loggers
from .core.models import BatchResponse
from .core.observability import MetricsCollector
from .processors import PROCESSORS, process_batch_async
from .processors.common import (
    create_default_service,
    log_metrics_summary,
    record_batch_errors,
)

logger = setup_logger("api", level=get_settings().log_level)
silence_noisy_loggers()

app = FastAPI(title="Image Transcoder Service", version=__version__)


@app.exception_handler(BatchParseError)
async def batch_parse_error_handler(request: Request, exc: BatchParseError):
    logger.error(f"Rejected batch request: {exc}")
    return JSONResponse(status_code=500, content={"error": "Failed to process images"})


@app.exception_handler(BatchTimeoutError)
async def batch_timeout_error_handler(request: Request, exc: BatchTimeoutError):
    logger.error(f"Batch timed out: {exc}")
    return JSONResponse(status_code=504, content={"error": "Processing timed out"})


def parse_settings(raw: Any) -> ProcessingSettings:
    """Parse the JSON ``settings`` form field."""
    if not isinstance(raw, str):
        raise BatchParseError("Missing settings field")
    with batch_error_handler():
        return ProcessingSettings.model_validate(json.loads(raw))


async def read_items(uploads: List[Any]) -> List[InputItem]:
    """Turn uploaded file parts into input items, preserving order."""
    if not uploads:
        raise BatchParseError("No files submitted")

    items = []
    for upload in uploads:
        if isinstance(upload, str):
            raise BatchParseError("Field 'files' must carry file parts")
        data = await upload.read()
        declared_size = upload.size if upload.size is not None else len(data)
        items.append(
            InputItem(name=upload.filename or "", data=data, declared_size=declared_size)
        )
    return items


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/process")
async def process(request: Request):
    config = get_settings()
    with batch_error_handler():
        form = await request.form()

    settings = parse_settings(form.get("settings"))
    items = await read_items(form.getlist("files"))
    metrics_collector = MetricsCollector()
    service = create_default_service(metrics_collector)

    logger.info(
        f"Processing {len(items)} image(s) -> {settings.target_format.value} "
        f"with {config.processor} processor"
    )
    with BatchOperationContextManager(operation_name="HTTP batch") as batch_manager:
        if config.processor == "asyncio":
            results = await process_batch_async(
                items,
                settings,
                service=service,
                max_workers=config.max_workers,
                timeout=config.batch_timeout_seconds,
            )
        else:
            _, process_batch_fn = PROCESSORS[config.processor]
            results = await run_in_threadpool(
                process_batch_fn,
                items,
                settings,
                service=service,
                max_workers=config.max_workers,
                timeout=config.batch_timeout_seconds,
            )
        record_batch_errors(results, batch_manager)

    log_metrics_summary(metrics_collector)

    return JSONResponse(content=BatchResponse(images=results).to_response())
