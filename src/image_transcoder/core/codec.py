"""Pillow-backed codec: metadata decoding, resizing and re-encoding."""

import base64
import io
from typing import Any, Callable, Dict, Tuple

from PIL import Image, features

from .error_handling import with_error_handling
from .exceptions import DecodeError, EncodeError
from .models import (
    AvifOptions,
    GifOptions,
    JpegOptions,
    PngOptions,
    SourceMetadata,
    TiffOptions,
    TransformPlan,
    WebpOptions,
)
from .planner import fit_inside

# Pillow names some containers differently from the formats clients ask for.
_FORMAT_ALIASES = {"mpo": "jpeg", "jpg": "jpeg", "tif": "tiff"}

_METADATA_KEYS = ("exif", "icc_profile", "xmp", "XML:com.adobe.xmp")

# Formats whose Pillow writers accept ``exif`` / ``icc_profile`` keywords.
_EXIF_WRITERS = {"JPEG", "PNG", "WEBP", "AVIF"}
_ICC_WRITERS = {"JPEG", "PNG", "WEBP", "AVIF", "TIFF"}

# Colour spaces the GIF writer cannot quantize on its own.
_GIF_CONVERT_MODES = {"CMYK", "YCbCr", "LAB", "HSV"}


def normalize_format(pil_format: str) -> str:
    """Map a Pillow format name to the lowercase name reported to clients."""
    name = (pil_format or "unknown").lower()
    return _FORMAT_ALIASES.get(name, name)


@with_error_handling(DecodeError, action="decode image")
def open_image(data: bytes) -> "Image.Image":
    """Open and fully load an image from bytes."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def decode_metadata(data: bytes) -> SourceMetadata:
    """Return format and dimensions of an encoded image."""
    image = open_image(data)
    return SourceMetadata(
        format=normalize_format(image.format),
        width=image.width,
        height=image.height,
    )


def _has_alpha(image: "Image.Image") -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def _to_rgb_family(image: "Image.Image") -> "Image.Image":
    if image.mode in ("RGB", "RGBA"):
        return image
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def _webp(image, options: WebpOptions) -> Tuple["Image.Image", str, Dict[str, Any]]:
    return (
        _to_rgb_family(image),
        "WEBP",
        {
            "quality": options.quality,
            "lossless": options.lossless,
            "method": min(options.effort, 6),
        },
    )


def _jpeg(image, options: JpegOptions):
    if image.mode not in ("RGB", "L", "CMYK"):
        image = image.convert("RGB")
    # high_quality_variant has no Pillow switch; optimize + progressive are
    # the parts libjpeg exposes.
    return (
        image,
        "JPEG",
        {
            "quality": options.quality,
            "optimize": options.optimize_coding,
            "progressive": options.progressive,
        },
    )


def _png(image, options: PngOptions):
    if options.quality < 100:
        image = _to_rgb_family(image)
        colors = max(2, round(256 * options.quality / 100))
        method = (
            Image.Quantize.FASTOCTREE if image.mode == "RGBA" else Image.Quantize.MEDIANCUT
        )
        image = image.quantize(colors=colors, method=method, kmeans=options.effort)
    return image, "PNG", {"compress_level": options.compression_level}


def _avif(image, options: AvifOptions):
    if not features.check("avif"):
        raise EncodeError("AVIF encoding is not supported by the installed Pillow build")
    kwargs: Dict[str, Any] = {
        "quality": 100 if options.lossless else options.quality,
        "speed": max(0, min(10, 10 - options.effort)),
    }
    if options.lossless:
        kwargs["subsampling"] = "4:4:4"
    return _to_rgb_family(image), "AVIF", kwargs


def _tiff(image, options: TiffOptions):
    return image, "TIFF", {"compression": f"tiff_{options.compression}"}


def _gif(image, options: GifOptions):
    if image.mode in _GIF_CONVERT_MODES:
        image = _to_rgb_family(image)
    return image, "GIF", {"optimize": options.effort > 0}


_SAVE_OPTIONS: Dict[str, Callable[..., Tuple["Image.Image", str, Dict[str, Any]]]] = {
    "webp": _webp,
    "jpeg": _jpeg,
    "png": _png,
    "avif": _avif,
    "tiff": _tiff,
    "gif": _gif,
}


@with_error_handling(EncodeError, action="encode image")
def encode(data: bytes, plan: TransformPlan) -> bytes:
    """
    Re-encode ``data`` according to ``plan``.

    Resizes with fit-inside semantics when the plan asks for it, applies the
    format-specific save options and either keeps or strips embedded
    EXIF / ICC metadata.

    Raises:
        DecodeError: the input bytes cannot be read
        EncodeError: the target format or its options are rejected
    """
    image = open_image(data)
    source_format = image.format
    metadata = {key: image.info[key] for key in _METADATA_KEYS if key in image.info}

    if plan.should_resize:
        size = fit_inside(
            image.width, image.height, plan.target_width, plan.target_height
        )
        if size != image.size:
            image = image.resize(size, Image.Resampling.LANCZOS)

    builder = _SAVE_OPTIONS.get(plan.encoder.kind)
    if builder is None:
        if not source_format:
            raise EncodeError("Cannot re-encode image without a known source format")
        pil_format, save_kwargs = source_format, {}
    else:
        image, pil_format, save_kwargs = builder(image, plan.encoder)

    for key in _METADATA_KEYS:
        image.info.pop(key, None)
    if plan.preserve_metadata:
        if "exif" in metadata and pil_format in _EXIF_WRITERS:
            save_kwargs["exif"] = metadata["exif"]
        if "icc_profile" in metadata and pil_format in _ICC_WRITERS:
            save_kwargs["icc_profile"] = metadata["icc_profile"]

    output = io.BytesIO()
    image.save(output, format=pil_format, **save_kwargs)
    return output.getvalue()


def to_data_url(data: bytes, image_format: str) -> str:
    """Render ``data`` as a base64 ``data:`` URL."""
    return f"data:image/{image_format};base64,{base64.b64encode(data).decode('ascii')}"


class PillowCodec:
    """Codec collaborator backed by Pillow."""

    def decode_metadata(self, data: bytes) -> SourceMetadata:
        return decode_metadata(data)

    def encode(self, data: bytes, plan: TransformPlan) -> bytes:
        return encode(data, plan)
