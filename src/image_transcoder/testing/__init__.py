"""Testing utilities and fakes for the image transcoder."""

from .fakes import (
    FakeCodec,
    FakeLogger,
    create_corrupt_item,
    create_test_image,
    create_test_item,
)

__all__ = [
    "FakeCodec",
    "FakeLogger",
    "create_corrupt_item",
    "create_test_image",
    "create_test_item",
]
