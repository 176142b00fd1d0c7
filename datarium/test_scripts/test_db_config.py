"""
Test Database Configuration

Manages test database setup and teardown.
Tests use a separate database to avoid corrupting development data:
module-level setup_test_database() switches the app into test mode, and
service tests get a private SQLite file per test through make_test_settings().
"""
import os
from pathlib import Path

# Default test database URL (relative to project root)
DEFAULT_TEST_DATABASE_URL = "sqlite:///./datarium/data/sqlite/test_datarium.db"

# Use environment override if present (allows CI or user to change path)
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)

if TEST_DATABASE_URL.startswith("sqlite:///"):
    db_path_str = TEST_DATABASE_URL.replace("sqlite:///./", "").replace("sqlite:///", "/")
else:
    db_path_str = TEST_DATABASE_URL

TEST_DB_PATH = Path(db_path_str)
DB_DIR = TEST_DB_PATH.parent


def setup_test_database():
    """
    Configure environment to use the test database.
    Must be called BEFORE importing any app modules that read settings.

    Returns:
        Path: Path to test database
    """
    DB_DIR.mkdir(parents=True, exist_ok=True)
    os.environ["DATARIUM_TEST_MODE"] = "1"
    os.environ["DATABASE_URL"] = TEST_DATABASE_URL
    return TEST_DB_PATH


def cleanup_test_database():
    """Remove test database after tests complete."""
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


def make_test_settings(tmp_path: Path, **overrides):
    """
    Settings pointing at a private database file under tmp_path.

    The simulated sign-in latency is disabled unless overridden.
    """
    from datarium.app.config import Settings

    values = {
        "DATABASE_URL": f"sqlite:///{tmp_path / 'datarium_test.db'}",
        "TEST_DATABASE_URL": f"sqlite:///{tmp_path / 'datarium_test.db'}",
        "SIGN_IN_DELAY_SECONDS": 0.0,
        "LOG_LEVEL": "DEBUG",
        }
    values.update(overrides)
    return Settings(**values)
