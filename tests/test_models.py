"""Tests for core data models."""

import pytest
from pydantic import ValidationError

from image_transcoder.core.models import (
    BatchResponse,
    InputItem,
    OutputFormat,
    ProcessingSettings,
    ResizeMode,
    ResizeSettings,
    ResultRecord,
    TiffOptions,
    TransformPlan,
)


class TestProcessingSettings:
    """Tests for ProcessingSettings."""

    def test_defaults(self):
        settings = ProcessingSettings()
        assert settings.target_format == OutputFormat.WEBP
        assert settings.quality == 85
        assert settings.resize is None
        assert settings.preserve_metadata is False
        assert settings.lossless is False
        assert settings.effort is None

    def test_parses_client_json_keys(self):
        settings = ProcessingSettings.model_validate(
            {
                "targetFormat": "avif",
                "quality": 60,
                "resize": {"width": 800, "mode": "maxWidth"},
                "preserveMetadata": True,
                "lossless": True,
                "effort": 9,
            }
        )
        assert settings.target_format == OutputFormat.AVIF
        assert settings.resize.width == 800
        assert settings.resize.height is None
        assert settings.resize.mode == ResizeMode.MAX_WIDTH
        assert settings.preserve_metadata is True
        assert settings.effort == 9

    def test_accepts_legacy_format_key(self):
        settings = ProcessingSettings.model_validate({"format": "png", "quality": 50})
        assert settings.target_format == OutputFormat.PNG

    @pytest.mark.parametrize(
        "payload",
        [
            {"quality": 0},
            {"quality": 101},
            {"effort": 10},
            {"effort": -1},
            {"targetFormat": "bmp"},
        ],
    )
    def test_rejects_out_of_range_values(self, payload):
        with pytest.raises(ValidationError):
            ProcessingSettings.model_validate(payload)

    def test_settings_are_immutable(self):
        settings = ProcessingSettings()
        with pytest.raises(ValidationError):
            settings.quality = 10


class TestResizeSettings:
    """Tests for ResizeSettings."""

    def test_mode_defaults_to_both(self):
        assert ResizeSettings(width=100).mode == ResizeMode.BOTH
        assert ResizeSettings.model_validate({"width": 100, "mode": None}).mode == ResizeMode.BOTH

    def test_zero_and_empty_dimensions_mean_unset(self):
        resize = ResizeSettings.model_validate({"width": 0, "height": ""})
        assert resize.width is None
        assert resize.height is None


class TestInputItem:
    def test_from_bytes_uses_length_as_declared_size(self):
        item = InputItem.from_bytes("a.png", b"12345")
        assert item.declared_size == 5
        assert item.name == "a.png"

    def test_declared_size_defaults_to_payload_length(self):
        assert InputItem(name="a.png", data=b"123").declared_size == 3
        assert InputItem(name="a.png", data=b"123", declared_size=None).declared_size == 3

    def test_explicit_declared_size_is_kept(self):
        assert InputItem(name="a.png", data=b"123", declared_size=10).declared_size == 10

    def test_negative_declared_size_is_rejected(self):
        with pytest.raises(ValidationError):
            InputItem(name="a.png", data=b"123", declared_size=-1)


class TestTransformPlan:
    def test_encoder_options_round_trip_by_kind(self):
        plan = TransformPlan.model_validate(
            {"target_format": "tiff", "encoder": {"kind": "tiff", "quality": 80}}
        )
        assert isinstance(plan.encoder, TiffOptions)
        assert plan.encoder.compression == "lzw"


class TestResultRecord:
    """Tests for ResultRecord serialization."""

    def test_success_record_uses_camel_case_keys(self):
        record = ResultRecord(
            original_name="a.jpg",
            original_size=1000,
            original_format="jpeg",
            processed_size=400,
            processed_format="webp",
            percentage_saved=60,
            width=10,
            height=20,
            processed_data_url="data:image/webp;base64,AAAA",
        )
        payload = record.to_response()

        assert payload["originalName"] == "a.jpg"
        assert payload["originalSize"] == 1000
        assert payload["processedFormat"] == "webp"
        assert payload["percentageSaved"] == 60
        assert payload["processedDataUrl"].startswith("data:image/webp")
        assert "error" not in payload
        assert "processingTime" not in payload
        assert record.success is True

    def test_error_record(self):
        record = ResultRecord(
            original_name="a.txt", error="Unsupported file format: txt", error_type="UnsupportedFormat"
        )
        payload = record.to_response()

        assert record.success is False
        assert payload["error"] == "Unsupported file format: txt"
        assert payload["errorType"] == "UnsupportedFormat"
        assert payload["processedSize"] == 0
        assert payload["processedDataUrl"] == ""
        assert "width" not in payload

    def test_ids_are_unique(self):
        first = ResultRecord(original_name="a")
        second = ResultRecord(original_name="a")
        assert first.id != second.id

    def test_batch_response_wraps_images(self):
        response = BatchResponse(images=[ResultRecord(original_name="a")])
        body = response.to_response()
        assert list(body) == ["images"]
        assert body["images"][0]["originalName"] == "a"
