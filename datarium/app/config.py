"""
Datarium settings.

Values come from the environment, then from `.env` at the project root,
then from the defaults below. Setting DATARIUM_TEST_MODE (or calling
set_test_mode()) makes get_settings() point DATABASE_URL at TEST_DATABASE_URL.
"""
import os
from pathlib import Path

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

# Directory holding the `datarium` package (and `.env`)
PROJECT_ROOT = Path(__file__).parent.parent.parent

TEST_MODE_ENV = "DATARIUM_TEST_MODE"
_TRUTHY = ("1", "true", "yes")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def set_test_mode(enabled: bool = True):
    """
    Switch test mode on or off for this process and its children.

    Args:
        enabled: True to route storage to TEST_DATABASE_URL
    """
    os.environ[TEST_MODE_ENV] = "1" if enabled else "0"


def is_test_mode() -> bool:
    return os.environ.get(TEST_MODE_ENV, "").lower() in _TRUTHY


class Settings(BaseSettings):
    """
    Application settings (environment variables take precedence over .env).
    """
    # Local storage: SQLite file holding the key-value table
    DATABASE_URL: str = "sqlite:///./datarium/data/sqlite/datarium.db"
    TEST_DATABASE_URL: str = "sqlite:///./datarium/data/sqlite/test_datarium.db"

    PROJECT_NAME: str = "Datarium"
    VERSION: str = "0.1.0"

    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False

    # Mock authentication answers after this many seconds (sign-in and sign-up)
    SIGN_IN_DELAY_SECONDS: float = Field(default=1.0, ge=0)

    model_config = ConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        )

    @field_validator("LOG_LEVEL")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return level


def get_settings() -> Settings:
    """
    Fresh Settings, redirected to the test database in test mode.
    """
    settings = Settings()
    if is_test_mode():
        return settings.model_copy(update={"DATABASE_URL": settings.TEST_DATABASE_URL})
    return settings
