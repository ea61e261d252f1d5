"""Core utilities and shared components for the image transcoder."""

from .logging_config import (
    configure_multiprocessing_logging,
    get_logger,
    setup_logger,
)
from .exceptions import (
    TranscoderError,
    AdmissionError,
    SizeExceededError,
    UnsupportedFormatError,
    EmptyFileError,
    DecodeError,
    EncodeError,
    ConfigurationError,
    BatchError,
    BatchParseError,
    BatchTimeoutError,
    batch_error_handler,
)
from .models import (
    InputItem,
    OutputFormat,
    ProcessingSettings,
    ResizeMode,
    ResizeSettings,
    ResultRecord,
    SourceMetadata,
    TransformPlan,
)
from .codec import PillowCodec, decode_metadata, encode
from .planner import build_encoder_options, build_plan, fit_inside, should_resize
from .validation import SUPPORTED_INPUT_FORMATS, validate_item
from .services import ImageTranscodeService, compute_percentage_saved

__all__ = [
    "InputItem",
    "OutputFormat",
    "ProcessingSettings",
    "ResizeMode",
    "ResizeSettings",
    "ResultRecord",
    "SourceMetadata",
    "TransformPlan",
    "PillowCodec",
    "decode_metadata",
    "encode",
    "build_encoder_options",
    "build_plan",
    "fit_inside",
    "should_resize",
    "SUPPORTED_INPUT_FORMATS",
    "validate_item",
    "ImageTranscodeService",
    "compute_percentage_saved",
    "setup_logger",
    "get_logger",
    "configure_multiprocessing_logging",
    "TranscoderError",
    "AdmissionError",
    "SizeExceededError",
    "UnsupportedFormatError",
    "EmptyFileError",
    "DecodeError",
    "EncodeError",
    "ConfigurationError",
    "BatchError",
    "BatchParseError",
    "BatchTimeoutError",
    "batch_error_handler",
]
