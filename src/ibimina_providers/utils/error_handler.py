"""Exception types and structured logging setup."""

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Error categories for classification"""
    DATA_PARSING = "data_parsing"
    CONFIGURATION = "configuration"
    PLUGIN = "plugin"
    STORAGE = "storage"
    NETWORK = "network"


class ProvidersError(Exception):
    """Base class for errors raised by this package"""

    category = ErrorCategory.DATA_PARSING


class ConfigurationError(ProvidersError):
    """Invalid or incomplete configuration, raised at construction time"""

    category = ErrorCategory.CONFIGURATION


class SessionStoreError(ProvidersError):
    """A session store backend rejected or failed an operation"""

    category = ErrorCategory.STORAGE

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        if hasattr(record, 'category'):
            log_entry['category'] = record.category
        if hasattr(record, 'session_id'):
            log_entry['session_id'] = record.session_id
        if hasattr(record, 'context'):
            log_entry['context'] = record.context
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_logging(level: int = logging.INFO,
                      json_format: bool = False,
                      log_file: Optional[str] = None) -> logging.Logger:
    """Set up console (and optional JSON file) logging for the package

    Args:
        level: Console log level
        json_format: Emit JSON lines on the console instead of plain text
        log_file: Optional path of a JSON-lines log file

    Returns:
        The package root logger
    """
    logger = logging.getLogger('ibimina_providers')
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    return logger
