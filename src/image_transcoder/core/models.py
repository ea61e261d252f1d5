"""Shared data models for the image transcoder."""

import time
import uuid
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class OutputFormat(str, Enum):
    """Formats the encoder can be asked to produce."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"
    TIFF = "tiff"
    GIF = "gif"


class ResizeMode(str, Enum):
    """Which axis bound triggers a resize."""

    MAX_WIDTH = "maxWidth"
    MAX_HEIGHT = "maxHeight"
    BOTH = "both"


class ResizeSettings(BaseModel):
    """Bounding box requested for a batch."""

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    mode: ResizeMode = ResizeMode.BOTH

    @field_validator("width", "height", mode="before")
    @classmethod
    def _zero_means_unset(cls, value):
        # The control panel sends 0 or "" for a cleared dimension.
        if value in (0, "", None):
            return None
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _default_mode(cls, value):
        return ResizeMode.BOTH if value in (None, "") else value


class ProcessingSettings(BaseModel):
    """Per-batch configuration, read-only while the batch runs."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_format: OutputFormat = Field(
        OutputFormat.WEBP,
        validation_alias=AliasChoices("targetFormat", "format", "target_format"),
        serialization_alias="targetFormat",
    )
    quality: int = Field(85, ge=1, le=100)
    resize: Optional[ResizeSettings] = None
    preserve_metadata: bool = Field(
        False,
        validation_alias=AliasChoices("preserveMetadata", "preserve_metadata"),
        serialization_alias="preserveMetadata",
    )
    lossless: bool = False
    effort: Optional[int] = Field(None, ge=0, le=9)


class InputItem(BaseModel):
    """One submitted file."""

    name: str
    data: bytes
    declared_size: int = Field(ge=0)

    @model_validator(mode="before")
    @classmethod
    def default_declared_size(cls, values: Any) -> Any:
        # An item built without a declared size is measured by its payload.
        if isinstance(values, dict) and values.get("declared_size") is None:
            values = {**values, "declared_size": len(values.get("data") or b"")}
        return values

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "InputItem":
        """Build an item whose declared size is its byte length."""
        return cls(name=name, data=data, declared_size=len(data))


class SourceMetadata(BaseModel):
    """Decoded facts about an image buffer."""

    format: str
    width: int
    height: int


class WebpOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["webp"] = "webp"
    quality: int
    lossless: bool = False
    effort: int = 4


class JpegOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["jpeg"] = "jpeg"
    quality: int
    optimize_coding: bool = True
    progressive: bool = True
    high_quality_variant: bool = True


class PngOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["png"] = "png"
    quality: int
    compression_level: int = 9
    effort: int = 7


class AvifOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["avif"] = "avif"
    quality: int
    lossless: bool = False
    effort: int = 4


class TiffOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["tiff"] = "tiff"
    quality: int
    compression: str = "lzw"


class GifOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["gif"] = "gif"
    effort: int = 7


class PassthroughOptions(BaseModel):
    """Encode in the source format with the codec's defaults."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["passthrough"] = "passthrough"


EncoderOptions = Annotated[
    Union[
        WebpOptions,
        JpegOptions,
        PngOptions,
        AvifOptions,
        TiffOptions,
        GifOptions,
        PassthroughOptions,
    ],
    Field(discriminator="kind"),
]


class TransformPlan(BaseModel):
    """Resolved resize and encoder parameters for a single item."""

    model_config = ConfigDict(frozen=True)

    target_format: str
    encoder: EncoderOptions
    should_resize: bool = False
    target_width: Optional[int] = None
    target_height: Optional[int] = None
    preserve_metadata: bool = False


def _new_result_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class ResultRecord(BaseModel):
    """Outcome of processing a single item."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_new_result_id)
    original_name: str
    original_size: int = 0
    original_format: str = "unknown"
    processed_size: int = 0
    processed_format: str = ""
    percentage_saved: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    original_data_url: Optional[str] = None
    processed_data_url: str = ""
    error: Optional[str] = None
    error_type: Optional[str] = None
    processing_time: float = Field(0.0, exclude=True)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_response(self) -> dict:
        """Serialize with the camelCase keys clients expect."""
        return self.model_dump(by_alias=True, exclude_none=True)


class BatchResponse(BaseModel):
    """Response body of a batch submission."""

    images: List[ResultRecord] = Field(default_factory=list)

    def to_response(self) -> dict:
        return {"images": [record.to_response() for record in self.images]}


class BatchSummary(BaseModel):
    """Aggregate statistics for a finished batch."""

    total_items: int = 0
    processed_count: int = 0
    error_count: int = 0
    total_original_size: int = 0
    total_processed_size: int = 0
    percentage_saved: int = 0
    processing_time: float = 0.0
