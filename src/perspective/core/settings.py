"""Settings for the perspective data loader.

The loader is configured from the environment (``PERSPECTIVE_`` prefix) or
a ``.env`` file. Defaults match the execution channel's standard operation
names, so most callers never set anything.

Examples:
    >>> from perspective.core.settings import PerspectiveSettings
    >>> settings = PerspectiveSettings(log_level="DEBUG")
    >>> settings.sql_select_operation
    'database-connections/sql-select'

    PERSPECTIVE_COLLECTION_DATA_OPERATION=mongo/collection-data  # env override

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class PerspectiveSettings(BaseSettings):
    """Loader settings.

    Fields
    ──────
    log_level                  : structlog log level
    log_json                   : JSON log rendering (None = auto-detect tty)
    service_name               : service.name stamped on every log line
    sql_select_operation       : channel operation running relational select trees
    collection_data_operation  : channel operation running document options
    """

    model_config = SettingsConfigDict(
        env_prefix="PERSPECTIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "perspective"

    # ── Execution channel ────────────────────────────────────────
    sql_select_operation: str = Field(
        default="database-connections/sql-select",
        description="Channel operation name for relational select-tree execution",
    )
    collection_data_operation: str = Field(
        default="database-connections/collection-data",
        description="Channel operation name for document options/pipeline execution",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return value


@lru_cache(maxsize=1)
def get_settings() -> PerspectiveSettings:
    """Process-wide settings, read from the environment once."""
    return PerspectiveSettings()


__all__ = ["PerspectiveSettings", "get_settings"]
