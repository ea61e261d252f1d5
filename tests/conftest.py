import pytest

from image_transcoder.core.config import get_settings
from image_transcoder.core.models import ProcessingSettings
from image_transcoder.testing.fakes import FakeCodec, FakeLogger


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test reads the environment afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_codec():
    return FakeCodec()


@pytest.fixture
def fake_logger():
    return FakeLogger()


@pytest.fixture
def webp_settings():
    return ProcessingSettings(target_format="webp", quality=80)
