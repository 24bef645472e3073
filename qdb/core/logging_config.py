"""
Structured JSON logging configuration.

Sets up application-wide JSON logging with consistent field names so adapter
operations can be traced per model and per operation:
- timestamp, level, message, logger
- model: mapped class name the operation ran against
- operation: read, query, delete, create or update
- row_count: number of rows returned or affected
- request_id: caller-supplied correlation ID
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Example output:
        {"timestamp": "2026-10-19T10:30:00.123456+00:00", "level": "DEBUG",
         "message": "read completed", "logger": "qdb.repositories.crud",
         "model": "Item", "operation": "read", "row_count": 3}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_data:
                continue
            if value is not None:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True
) -> None:
    """
    Configure application logging.

    Replaces the root logger's handlers with a single stdout handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or simple formatter (False)

    Example:
        from qdb.core.config import settings
        setup_logging(level=settings.log_level, json_format=settings.log_json)
    """
    root_logger = logging.getLogger()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Engine echo is controlled by QDB_ECHO_SQL, not the root level
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance with given name.

    Example:
        logger = get_logger(__name__)
        logger.info("Session opened", extra={"request_id": "abc-123"})
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    model: Optional[str] = None,
    operation: Optional[str] = None,
    row_count: Optional[int] = None,
    request_id: Optional[str] = None,
    **extra_fields: Any
) -> None:
    """
    Log message with structured context fields.

    Args:
        logger: Logger instance
        level: Log level name (debug, info, warning, error, critical)
        message: Log message
        model: Mapped class name
        operation: Adapter operation name
        row_count: Rows returned or affected
        request_id: Request correlation ID
        **extra_fields: Additional fields to include

    Example:
        log_with_context(
            logger,
            "debug",
            "read completed",
            model="Item",
            operation="read",
            row_count=3
        )
    """
    extra: Dict[str, Any] = {}

    if model is not None:
        extra["model"] = model
    if operation is not None:
        extra["operation"] = operation
    if row_count is not None:
        extra["row_count"] = row_count
    if request_id is not None:
        extra["request_id"] = request_id

    extra.update(extra_fields)

    log_method = getattr(logger, level.lower())
    log_method(message, extra=extra)
