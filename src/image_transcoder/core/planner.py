"""Resize decisions and per-format encoder option selection."""

from typing import Callable, Dict, Optional, Tuple

from .models import (
    AvifOptions,
    EncoderOptions,
    GifOptions,
    JpegOptions,
    PassthroughOptions,
    PngOptions,
    ProcessingSettings,
    ResizeMode,
    ResizeSettings,
    SourceMetadata,
    TiffOptions,
    TransformPlan,
    WebpOptions,
)


def should_resize(
    resize: Optional[ResizeSettings], current_width: int, current_height: int
) -> bool:
    """
    Decide whether an image exceeds the requested bounds.

    Args:
        resize: Requested bounds, or None when no resize was asked for
        current_width: Source width in pixels
        current_height: Source height in pixels

    Returns:
        True when the rule for ``resize.mode`` is met
    """
    if resize is None or (not resize.width and not resize.height):
        return False

    too_wide = bool(resize.width) and current_width > resize.width
    too_tall = bool(resize.height) and current_height > resize.height

    if resize.mode == ResizeMode.MAX_WIDTH:
        return too_wide
    if resize.mode == ResizeMode.MAX_HEIGHT:
        return too_tall
    return too_wide or too_tall


def fit_inside(
    current_width: int,
    current_height: int,
    width: Optional[int],
    height: Optional[int],
) -> Tuple[int, int]:
    """
    Scale ``(current_width, current_height)`` to fit a bounding box.

    Aspect ratio is preserved and the image is never enlarged: an unset
    bound places no constraint, and a bound larger than the source leaves
    that axis unscaled.
    """
    scale = 1.0
    if width:
        scale = min(scale, width / current_width)
    if height:
        scale = min(scale, height / current_height)

    if scale >= 1.0:
        return current_width, current_height

    return (
        max(1, round(current_width * scale)),
        max(1, round(current_height * scale)),
    )


def _effort(settings: ProcessingSettings, default: int) -> int:
    return default if settings.effort is None else settings.effort


# One builder per target format; unknown formats fall through to passthrough.
_ENCODER_BUILDERS: Dict[str, Callable[[ProcessingSettings], EncoderOptions]] = {
    "webp": lambda s: WebpOptions(
        quality=s.quality, lossless=s.lossless, effort=_effort(s, 4)
    ),
    "jpeg": lambda s: JpegOptions(quality=s.quality),
    "png": lambda s: PngOptions(quality=s.quality, effort=_effort(s, 7)),
    "avif": lambda s: AvifOptions(
        quality=s.quality, lossless=s.lossless, effort=_effort(s, 4)
    ),
    "tiff": lambda s: TiffOptions(quality=s.quality),
    "gif": lambda s: GifOptions(effort=_effort(s, 7)),
}


def build_encoder_options(
    target_format: str, settings: ProcessingSettings
) -> EncoderOptions:
    """Select encoder options for ``target_format`` from the batch settings."""
    builder = _ENCODER_BUILDERS.get(str(target_format).lower())
    if builder is None:
        return PassthroughOptions()
    return builder(settings)


def build_plan(metadata: SourceMetadata, settings: ProcessingSettings) -> TransformPlan:
    """
    Combine the resize decision and encoder options for one item.

    Once a resize triggers, the whole box ``(width, height)`` is carried,
    whatever the mode, so ``maxWidth`` still honours a set height (fit inside).
    """
    target_format = settings.target_format.value
    resize = settings.resize
    resize_needed = should_resize(resize, metadata.width, metadata.height)

    return TransformPlan(
        target_format=target_format,
        encoder=build_encoder_options(target_format, settings),
        should_resize=resize_needed,
        target_width=resize.width if resize_needed else None,
        target_height=resize.height if resize_needed else None,
        preserve_metadata=settings.preserve_metadata,
    )
