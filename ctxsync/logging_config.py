"""
Logging configuration for ctxsync.

Console output always goes to stderr, since the MCP server uses stdout as
its protocol channel. A rotating log file and JSON formatting are optional.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import Config

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = False,
    max_log_size_mb: int = 10,
    log_backups: int = 5,
) -> None:
    """
    Configure application-wide logging for ctxsync.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file for file output
        json_format: Use JSON formatting for logs
        max_log_size_mb: Maximum log file size in MB before rotation
        log_backups: Number of backup log files to keep

    Example:
        setup_logging(level="DEBUG", log_file=Path("~/.ctxsync/ctxsync.log"))
    """
    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    numeric_level = getattr(logging, level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(numeric_level)
    handlers.append(console_handler)

    if log_file:
        log_file = Path(log_file).expanduser()
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                filename=str(log_file),
                maxBytes=max_log_size_mb * 1024 * 1024,
                backupCount=log_backups,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(numeric_level)
            handlers.append(file_handler)
        except OSError as e:
            # Fall back to console-only logging
            root_logger.warning(f"Failed to set up file logging: {e}. Using console only.")
            log_file = None

    for handler in handlers:
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    root_logger.debug(
        f"Logging initialized: level={level}, "
        f"file={log_file or 'disabled'}, "
        f"format={'JSON' if json_format else 'text'}"
    )


def setup_logging_from_config(config: "Config", debug: bool = False) -> None:
    """Configure logging from the [logging] section of a Config."""
    log_file = config.get("logging", "file")
    setup_logging(
        level="DEBUG" if debug else config.get("logging", "level", default="INFO"),
        log_file=Path(log_file) if log_file else None,
        json_format=bool(config.get("logging", "json", default=False)),
    )


def set_log_level(level: str) -> None:
    """
    Dynamically change the log level for all loggers.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers:
        handler.setLevel(getattr(logging, level.upper()))

    root_logger.info(f"Log level changed to: {level}")
