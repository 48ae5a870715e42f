"""Logging configuration for the bnprep pipeline.

Human-readable console output by default, JSON lines (python-json-logger) when
requested, and an optional rotating log file.
"""

import copy
import logging
import logging.config
from pathlib import Path
from typing import Optional

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "json": {
            "format": "%(asctime)s %(name)s %(levelname)s %(lineno)d %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%SZ",
            "class": "pythonjsonlogger.json.JsonFormatter",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "detailed",
            "stream": "ext://sys.stdout",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": "logs/bnprep.log",
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
    "loggers": {
        "bnprep": {
            "level": "DEBUG",
            "handlers": ["console", "file"],
            "propagate": False,
        },
    },
}


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    verbose: bool = False,
) -> None:
    """Configure logging for the pipeline.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        json_format: Use JSON formatting on the console
        verbose: Shortcut for level="DEBUG"
    """
    config = copy.deepcopy(LOGGING_CONFIG)

    if verbose:
        level = "DEBUG"
    level = level.upper()
    config["root"]["level"] = level
    config["handlers"]["console"]["level"] = level

    config["handlers"]["console"]["formatter"] = "json" if json_format else "detailed"

    if log_file:
        config["handlers"]["file"]["filename"] = log_file
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    else:
        config["handlers"].pop("file", None)
        for logger_config in config["loggers"].values():
            if "file" in logger_config["handlers"]:
                logger_config["handlers"].remove("file")

    logging.config.dictConfig(config)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured: level=%s, json_format=%s, log_file=%s",
        level, json_format, log_file,
    )


def log_data_processing(operation: str, record_count: int, **context) -> None:
    """Log a table-level operation and its resulting row count."""
    logging.getLogger("bnprep.processing").info(
        "Data processing: %s - %d records", operation, record_count, extra=context,
    )
