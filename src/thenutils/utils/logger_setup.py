"""Configures logging for applications using thenutils, including JSON formatting."""

import logging
import json
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config_manager import get_config

LOG_FILENAME = "thenutils.log"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
        }
        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        # Paths and other objects in args are not always JSON serializable
        if record.args:
            try:
                json.dumps(record.args)
                log_entry["args"] = record.args
            except TypeError:
                log_entry["args"] = tuple(repr(arg) for arg in record.args)

        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: Optional[str] = None) -> None:
    """Configures the root logger from the ``logging`` configuration section.

    The library itself never calls this; applications do, once, at startup.

    Args:
        level: Optional log level string (e.g., "DEBUG"). If None, uses config.
    """
    log_config = get_config().logging

    effective_level = (level if level is not None else log_config.level).upper()
    log_level_val = getattr(logging, effective_level, None)
    if not isinstance(log_level_val, int):
        logging.getLogger(__name__).warning(
            "Invalid log level '%s'. Defaulting to INFO.", effective_level
        )
        effective_level = "INFO"
        log_level_val = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level_val)

    # Avoid duplicate handlers if called multiple times
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if log_config.enable_structured_logging:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level_val)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_config.enable_file_logging:
        log_file_path = Path(log_config.log_directory) / LOG_FILENAME
        os.makedirs(log_file_path.parent, exist_ok=True)

        file_handler = RotatingFileHandler(
            str(log_file_path),
            maxBytes=log_config.max_log_size_mb * 1024 * 1024,
            backupCount=log_config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)
        logging.getLogger(__name__).info("File logging configured to %s", log_file_path)

    logging.getLogger(__name__).debug("Logging setup complete. Effective Level: %s", effective_level)
