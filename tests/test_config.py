"""Settings parsing tests."""

from linkshort.config import Settings


def test_base_url_gets_trailing_slash() -> None:
    settings = Settings(_env_file=None, BASE_URL="https://mtrx.to")
    assert settings.BASE_URL == "https://mtrx.to/"
    assert settings.base_path == "/"


def test_base_path_from_base_url() -> None:
    settings = Settings(_env_file=None, BASE_URL="https://example.com/s/")
    assert settings.base_path == "/s/"


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.MAX_GENERATION_ATTEMPTS == 30
    assert settings.SHORT_PATH_BYTES == 6
    assert settings.LENGTH_LIMIT == 256
    assert settings.FOLLOW_QUEUE_SIZE == 1024 * 1024
