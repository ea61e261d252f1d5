"""Unit tests for the per-item transcode service."""

import pytest

from image_transcoder.core.config import MAX_FILE_SIZE
from image_transcoder.core.models import InputItem, ProcessingSettings, ResizeSettings
from image_transcoder.core.observability import MetricsCollector
from image_transcoder.core.services import (
    ImageTranscodeService,
    compute_percentage_saved,
    error_record,
)
from image_transcoder.core.exceptions import DecodeError
from image_transcoder.testing.fakes import FakeCodec, FakeLogger, create_test_item


def _registered_item(codec, name="photo.jpg", fill=b"a", size=1000, dims=(400, 300)):
    data = codec.register(fill * size, "jpeg", *dims)
    return InputItem.from_bytes(name, data)


class TestComputePercentageSaved:
    def test_savings(self):
        assert compute_percentage_saved(1000, 400) == 60

    def test_growth_is_negative_and_unclamped(self):
        assert compute_percentage_saved(1000, 1200) == -20
        assert compute_percentage_saved(100, 1000) == -900

    def test_rounds_half_up(self):
        assert compute_percentage_saved(1000, 995) == 1
        assert compute_percentage_saved(1000, 1005) == 0

    def test_zero_original_is_rejected(self):
        with pytest.raises(ValueError):
            compute_percentage_saved(0, 10)


class TestImageTranscodeService:
    """Tests for ImageTranscodeService with a fake codec."""

    def test_success_record(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = _registered_item(fake_codec)

        result = service.process_item(item, webp_settings)

        assert result.success is True
        assert result.original_name == "photo.jpg"
        assert result.original_size == 1000
        assert result.original_format == "jpeg"
        assert result.processed_size == 400
        assert result.processed_format == "webp"
        assert result.percentage_saved == 60
        assert (result.width, result.height) == (400, 300)
        assert result.processed_data_url.startswith("data:image/webp;base64,")
        assert result.original_data_url.startswith("data:image/jpeg;base64,")
        assert result.error is None

    def test_larger_output_reports_negative_savings(self, webp_settings):
        codec = FakeCodec(output_sizes={"webp": 1200})
        service = ImageTranscodeService(codec=codec)

        result = service.process_item(_registered_item(codec), webp_settings)

        assert result.success is True
        assert result.percentage_saved == -20

    def test_final_dimensions_come_from_output(self, fake_codec):
        service = ImageTranscodeService(codec=fake_codec)
        settings = ProcessingSettings(resize=ResizeSettings(width=200))

        result = service.process_item(_registered_item(fake_codec, dims=(400, 300)), settings)

        assert (result.width, result.height) == (200, 150)
        assert fake_codec.plans[0].should_resize is True

    def test_oversized_item_is_rejected_without_decoding(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = InputItem(name="huge.jpg", data=b"x", declared_size=MAX_FILE_SIZE + 1)

        result = service.process_item(item, webp_settings)

        assert result.success is False
        assert result.error_type == "SizeExceeded"
        assert result.processed_size == 0
        assert result.percentage_saved == 0
        assert result.original_size == MAX_FILE_SIZE + 1
        assert result.original_format == "unknown"
        assert result.processed_format == "webp"
        assert fake_codec.plans == []

    def test_oversized_payload_without_declared_size_is_rejected(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = InputItem(name="big.png", data=b"\0" * (MAX_FILE_SIZE + 1))

        result = service.process_item(item, webp_settings)

        assert result.error_type == "SizeExceeded"
        assert result.original_size == MAX_FILE_SIZE + 1
        assert result.processed_size == 0
        assert fake_codec.plans == []

    def test_unsupported_extension(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = _registered_item(fake_codec, name="photo.bmp")

        result = service.process_item(item, webp_settings)

        assert result.error == "Unsupported file format: bmp"
        assert result.error_type == "UnsupportedFormat"

    def test_decode_failure_becomes_error_record(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = InputItem.from_bytes("broken.jpg", b"not registered")

        result = service.process_item(item, webp_settings)

        assert result.success is False
        assert result.error_type == "DecodeError"
        assert "unsupported image format" in result.error
        assert result.original_size == len(b"not registered")
        assert result.processed_data_url == ""

    def test_encode_failure_becomes_error_record(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = _registered_item(fake_codec)
        fake_codec.fail_encode(item.data, "effort out of range")

        result = service.process_item(item, webp_settings)

        assert result.error == "effort out of range"
        assert result.error_type == "EncodeError"

    def test_unexpected_exception_is_contained(self, webp_settings):
        class ExplodingCodec(FakeCodec):
            def decode_metadata(self, data):
                raise RuntimeError("codec crashed")

        service = ImageTranscodeService(codec=ExplodingCodec())

        result = service.process_item(create_test_item(), webp_settings)

        assert result.error == "codec crashed"
        assert result.error_type == "RuntimeError"

    def test_original_payload_can_be_omitted(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec, include_original_payload=False)

        result = service.process_item(_registered_item(fake_codec), webp_settings)

        assert result.original_data_url is None
        assert "originalDataUrl" not in result.to_response()

    def test_identical_input_gives_identical_metrics(self, fake_codec, webp_settings):
        service = ImageTranscodeService(codec=fake_codec)
        item = _registered_item(fake_codec)

        first = service.process_item(item, webp_settings)
        second = service.process_item(item, webp_settings)

        assert first.processed_size == second.processed_size
        assert first.percentage_saved == second.percentage_saved
        assert first.id != second.id

    def test_logs_with_context(self, fake_codec, webp_settings):
        logger = FakeLogger()
        service = ImageTranscodeService(codec=fake_codec, logger=logger)

        service.process_item(_registered_item(fake_codec), webp_settings)
        service.process_item(InputItem.from_bytes("x.txt", b"1"), webp_settings)

        info = logger.get_logs("INFO")
        errors = logger.get_logs("ERROR")
        assert info[0]["message"] == "Successfully processed image"
        assert info[0]["original_name"] == "photo.jpg"
        assert errors[0]["error_type"] == "UnsupportedFormat"

    def test_records_metrics(self, fake_codec, webp_settings):
        collector = MetricsCollector()
        service = ImageTranscodeService(codec=fake_codec, metrics_collector=collector)

        service.process_item(_registered_item(fake_codec), webp_settings)
        service.process_item(InputItem.from_bytes("x.txt", b"1"), webp_settings)

        summary = collector.get_summary("process_item")
        assert summary["total_operations"] == 2
        assert summary["successful_operations"] == 1
        assert summary["failed_operations"] == 1


class TestServiceWithPillow:
    """The default codec against real images."""

    def test_real_image_round_trip(self):
        service = ImageTranscodeService()
        item = create_test_item("photo.jpg", size=(300, 200))
        settings = ProcessingSettings(
            target_format="png", quality=100, resize=ResizeSettings(width=150)
        )

        result = service.process_item(item, settings)

        assert result.success is True
        assert (result.width, result.height) == (150, 100)
        assert result.original_format == "jpeg"
        assert result.processed_format == "png"

    def test_mismatched_extension_fails_at_decode(self, webp_settings):
        service = ImageTranscodeService()
        item = InputItem.from_bytes("fake.png", b"plain text pretending to be a png")

        result = service.process_item(item, webp_settings)

        assert result.error_type == "DecodeError"


def test_error_record_defaults(webp_settings):
    item = InputItem(name="a.jpg", data=b"abc", declared_size=3)
    record = error_record(item, webp_settings, DecodeError("bad bytes"))

    assert record.original_size == 3
    assert record.processed_size == 0
    assert record.percentage_saved == 0
    assert record.error == "bad bytes"
    assert record.error_type == "DecodeError"
