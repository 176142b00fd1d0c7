"""
Test settings loading and the test-mode database switch.
"""
import pytest
from pydantic import ValidationError

from datarium.app.config import Settings, get_settings, is_test_mode


def test_test_mode_redirects_database(monkeypatch):
    """Test mode points DATABASE_URL at TEST_DATABASE_URL."""
    monkeypatch.setenv("DATARIUM_TEST_MODE", "1")
    monkeypatch.setenv("TEST_DATABASE_URL", "sqlite:///./somewhere/test.db")

    assert is_test_mode()
    assert get_settings().DATABASE_URL == "sqlite:///./somewhere/test.db"


def test_normal_mode_keeps_database(monkeypatch):
    """Outside test mode DATABASE_URL comes from the environment."""
    monkeypatch.setenv("DATARIUM_TEST_MODE", "0")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./prod.db")

    assert not is_test_mode()
    assert get_settings().DATABASE_URL == "sqlite:///./prod.db"


def test_log_level_normalised():
    """LOG_LEVEL is upper-cased and checked."""
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
    with pytest.raises(ValidationError, match="LOG_LEVEL must be one of"):
        Settings(LOG_LEVEL="chatty")


def test_negative_delay_rejected():
    """The simulated sign-in delay cannot be negative."""
    with pytest.raises(ValidationError):
        Settings(SIGN_IN_DELAY_SECONDS=-1)
