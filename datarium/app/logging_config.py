"""
Structured logging for Datarium.

Every module logs through `get_logger(__name__)` with key/value events:

    logger = get_logger(__name__)
    logger.info("Asset added", user_id=user.id, asset_id=asset.id)

Output is one JSON object per line on stderr (stdout is left to the CLI),
optionally mirrored to datarium/logs/datarium.log. The file rolls over every
Monday and keeps 12 gzip-compressed weeks.

The id of the signed-in user is bound into the structlog context by
AppContext.set_session(), so every event emitted while a session is active
carries `session_user_id` without services passing it around.
"""
import gzip
import logging
import logging.handlers
import shutil
import sys
from pathlib import Path
from typing import Any, List, Optional

import structlog
from structlog.types import EventDict, Processor

LOG_FILE_NAME = "datarium.log"
LOG_RETENTION_WEEKS = 12

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")


def get_log_directory() -> Path:
    """datarium/logs, created on first use."""
    log_dir = Path(__file__).parent.parent / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def add_log_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Upper-case `level` field; the deprecated `warn` alias is reported as WARNING."""
    event_dict["level"] = ("warning" if method_name == "warn" else method_name).upper()
    return event_dict


def _gzip_namer(default_name: str) -> str:
    return f"{default_name}.gz"


def _gzip_rotator(source: str, dest: str) -> None:
    """Compress the rolled-over file into dest and drop the plain copy."""
    source_path = Path(source)
    with source_path.open("rb") as plain, gzip.open(dest, "wb") as packed:
        shutil.copyfileobj(plain, packed)
    source_path.unlink()


def _build_handlers(level: int, enable_file_logging: bool) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    handlers: List[logging.Handler] = [console]

    if enable_file_logging:
        weekly = logging.handlers.TimedRotatingFileHandler(
            filename=str(get_log_directory() / LOG_FILE_NAME),
            when="W0",
            backupCount=LOG_RETENTION_WEEKS,
            encoding="utf-8",
            utc=True,
            )
        weekly.setLevel(level)
        weekly.namer = _gzip_namer
        weekly.rotator = _gzip_rotator
        handlers.append(weekly)

    return handlers


def _processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
        ]


def configure_logging(log_level: str = "INFO", enable_file_logging: bool = False) -> None:
    """
    Configure structured logging for the application.

    Safe to call more than once (each application start reconfigures the
    root logger from scratch).

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown values fall back to INFO)
        enable_file_logging: Also write to the weekly rotated log file
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        handlers=_build_handlers(level, enable_file_logging),
        level=level,
        force=True,
        )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
        )


def bind_session_user(user_id: Optional[str]) -> None:
    """Attach the active user id to every following log event (None clears it)."""
    if user_id is None:
        structlog.contextvars.unbind_contextvars("session_user_id")
    else:
        structlog.contextvars.bind_contextvars(session_user_id=user_id)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module (pass __name__)."""
    return structlog.get_logger(name)
