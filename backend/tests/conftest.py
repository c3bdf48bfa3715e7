"""Root conftest — shared test configuration."""

import pytest

from process_api.config import get_settings

_CONFIG_ENV = (
    "HTTP_ADDR", "HTTP_READ_TIMEOUT", "HTTP_WRITE_TIMEOUT",
    "SHUTDOWN_TIMEOUT", "REQUEST_TIMEOUT", "LOG_LEVEL", "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Every test sees default settings unless it sets env vars itself."""
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
