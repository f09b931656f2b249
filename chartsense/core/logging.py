"""
Structured logging configuration.

Provides JSON logging for production and readable text format for development.
"""
import sys
import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from chartsense.core.config import Settings, get_settings

_RESERVED_ATTRS = (
    'name', 'msg', 'args', 'created', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno',
    'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info',
    'thread', 'threadName', 'exc_info', 'exc_text',
    'message', 'run_id', 'taskName',
)


class JSONFormatter(logging.Formatter):
    """
    Structured JSON log formatter.

    Outputs logs in JSON format with:
    - timestamp
    - level
    - message
    - module
    - extra fields
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add run_id if present
        if hasattr(record, 'run_id'):
            log_data['run_id'] = record.run_id

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Readable text formatter for development."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - [%(run_id)s] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, 'run_id'):
            record.run_id = 'system'
        return super().format(record)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure logging for the engine.

    Uses settings.log_format:
    - 'json': Structured JSON logging (recommended for production)
    - 'text': Human-readable format (default for development)
    """
    settings = settings or get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if settings.log_format == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)

    if settings.log_format == 'json':
        root_logger.info("Structured JSON logging enabled")
