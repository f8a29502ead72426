"""Runtime settings for the analytics search library.

Values come from the environment (case-insensitive) or an optional ``.env``
file. The settings are read-only for the library; callers that need a
different configuration pass their own ``Settings`` instance.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"

    # Timezone used to bucket date histograms
    ANALYTICS_TIMEZONE: str = "UTC"
    # Default query timeout rendered into every document, in seconds
    ANALYTICS_QUERY_TIMEOUT: int = 90

    ELASTICSEARCH_URL: str = "http://localhost:9200"
    ELASTICSEARCH_INDEX: str = ""  # empty = search all indices
    # Major API version; < 2 selects the legacy request shapes
    ELASTICSEARCH_API_VERSION: int = 1
    ELASTICSEARCH_HTTP_TIMEOUT: float = 100.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings()
    return _settings_cache


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings_cache
    _settings_cache = None
