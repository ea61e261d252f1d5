"""Main module for the image transcoder CLI."""

import sys
import base64
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core import (
    BatchError,
    ConfigurationError,
    InputItem,
    OutputFormat,
    ProcessingSettings,
    ResizeMode,
    ResizeSettings,
    get_logger,
)
from .core.config import PROCESSOR_CHOICES, get_settings
from .core.logging_config import silence_noisy_loggers
from .core.models import BatchResponse, ResultRecord
from .processors import PROCESSORS, run_batch
from .processors.common import output_filename


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``image-transcoder`` command."""
    parser = argparse.ArgumentParser(
        prog="image-transcoder",
        description="Image Transcoder - batch convert, compress and resize images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert photos to WebP at quality 80, writing results to ./out
  image-transcoder process photo1.jpg photo2.png --format webp --quality 80 \\
                           --output-dir out

  # Shrink anything wider than 1920px, using a thread pool
  image-transcoder process *.jpg --width 1920 --mode maxWidth \\
                           --processor multithread

  # Run the HTTP service
  image-transcoder serve --port 8000
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Transcode local image files"
    )
    process_parser.add_argument("files", nargs="+", help="Image files to process")
    process_parser.add_argument(
        "--format",
        dest="target_format",
        default=OutputFormat.WEBP.value,
        choices=[f.value for f in OutputFormat],
        help="Target format (default: webp)",
    )
    process_parser.add_argument(
        "--quality", type=int, default=85, help="Encoder quality 1-100 (default: 85)"
    )
    process_parser.add_argument("--width", type=int, default=None, help="Max width")
    process_parser.add_argument("--height", type=int, default=None, help="Max height")
    process_parser.add_argument(
        "--mode",
        default=ResizeMode.BOTH.value,
        choices=[m.value for m in ResizeMode],
        help="Which bound triggers a resize (default: both)",
    )
    process_parser.add_argument(
        "--preserve-metadata", action="store_true", help="Keep EXIF/ICC metadata"
    )
    process_parser.add_argument(
        "--lossless", action="store_true", help="Lossless WebP/AVIF encoding"
    )
    process_parser.add_argument(
        "--effort", type=int, default=None, help="Compression effort 0-9"
    )
    process_parser.add_argument(
        "--processor",
        default="serial",
        choices=list(PROCESSOR_CHOICES),
        help="Processing strategy to use (default: serial)",
    )
    process_parser.add_argument(
        "--max-workers", type=int, default=None, help="Worker pool size"
    )
    process_parser.add_argument(
        "--timeout", type=float, default=None, help="Deadline for the whole batch (s)"
    )
    process_parser.add_argument(
        "--output-dir", default=None, help="Directory to write processed files to"
    )
    process_parser.add_argument(
        "--json", action="store_true", help="Print the JSON response to stdout"
    )
    process_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    subparsers.add_parser("version", help="Show version information")

    return parser


def settings_from_args(args: argparse.Namespace) -> ProcessingSettings:
    """Translate CLI flags into batch settings."""
    resize = None
    if args.width or args.height:
        resize = ResizeSettings(width=args.width, height=args.height, mode=args.mode)
    return ProcessingSettings(
        target_format=args.target_format,
        quality=args.quality,
        resize=resize,
        preserve_metadata=args.preserve_metadata,
        lossless=args.lossless,
        effort=args.effort,
    )


def load_items(paths: List[str]) -> List[InputItem]:
    """Read files from disk; unreadable paths become empty items that fail admission."""
    logger = get_logger("processor")
    items = []
    for path in paths:
        file_path = Path(path)
        try:
            data = file_path.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read {path}: {e}")
            data = b""
        items.append(InputItem(name=file_path.name, data=data, declared_size=len(data)))
    return items


def write_outputs(results: List[ResultRecord], output_dir: str) -> None:
    """Write each successful result's payload to ``output_dir``."""
    logger = get_logger("processor")
    target = Path(output_dir)
    target.mkdir(parents=True, exist_ok=True)
    for record in results:
        if not record.success:
            continue
        payload = base64.b64decode(record.processed_data_url.split(",", 1)[1])
        destination = target / output_filename(record)
        destination.write_bytes(payload)
        logger.info(f"Wrote {destination} ({record.percentage_saved}% saved)")


def run_process(args: argparse.Namespace) -> int:
    logger = get_logger("processor")
    if args.debug:
        logger.setLevel(logging.DEBUG)
        logging.getLogger().setLevel(logging.DEBUG)

    settings = settings_from_args(args)
    items = load_items(args.files)
    processor_name, process_batch_fn = PROCESSORS[args.processor]

    results, summary = run_batch(
        items,
        settings,
        processor_name,
        process_batch_fn,
        max_workers=args.max_workers or get_settings().max_workers,
        timeout=args.timeout,
    )

    if args.output_dir:
        write_outputs(results, args.output_dir)
    if args.json:
        print(json.dumps(BatchResponse(images=results).to_response(), indent=2))

    return 1 if summary.error_count else 0


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the ``image-transcoder`` command-line interface.

    ``process`` runs one batch over local files, ``serve`` starts the
    FastAPI app under uvicorn and ``version`` prints version information.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    silence_noisy_loggers()

    if args.command == "process":
        try:
            sys.exit(run_process(args))
        except KeyboardInterrupt:
            get_logger("processor").warning("Processing interrupted by user.")
            sys.exit(130)
        except (BatchError, ConfigurationError, ValueError) as e:
            get_logger("processor").error(f"Processing failed: {e}")
            sys.exit(2)

    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "image_transcoder.api:app",
            host=args.host,
            port=args.port,
            log_level=get_settings().log_level.lower(),
        )

    elif args.command == "version":
        print("Image Transcoder CLI")
        print(f"Version {__version__}")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
