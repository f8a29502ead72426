import os

import pytest

from analytics_search.core import config
from analytics_search.core.config import Settings
from analytics_search.core.search import client
from analytics_search.core.search.client import RecordingSearchBackend


# List of environment variables that may be modified by tests
_ENV_VARS_TO_ISOLATE = [
    "LOG_LEVEL",
    "ANALYTICS_TIMEZONE",
    "ANALYTICS_QUERY_TIMEOUT",
    "ELASTICSEARCH_URL",
    "ELASTICSEARCH_INDEX",
    "ELASTICSEARCH_API_VERSION",
    "ELASTICSEARCH_HTTP_TIMEOUT",
]


@pytest.fixture(autouse=True)
def env_isolation():
    """Isolate environment variables between tests."""
    backup = {k: os.environ.get(k) for k in _ENV_VARS_TO_ISOLATE}
    try:
        yield
    finally:
        for k, v in backup.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


@pytest.fixture(autouse=True)
def global_state_isolation():
    """Reset cached settings and the global search backend between tests."""
    config.reset_settings()
    client.set_search_backend(None)
    yield
    config.reset_settings()
    client.set_search_backend(None)


@pytest.fixture
def settings():
    return Settings(
        ANALYTICS_TIMEZONE="America/Denver",
        ELASTICSEARCH_API_VERSION=2,
    )


@pytest.fixture
def legacy_settings():
    return Settings(
        ANALYTICS_TIMEZONE="America/Denver",
        ELASTICSEARCH_API_VERSION=1,
    )


@pytest.fixture
def backend():
    return RecordingSearchBackend()
