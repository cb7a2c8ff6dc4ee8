import logging
import logging.config
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

if TYPE_CHECKING:
    from gaiax_credentials.config import Settings

"""
Configures and provides logging for the application.

This module sets up plain text logging by default (or structured JSON logging if configured)
and stamps every record with the identifier of the current pipeline run, so that all the
lines written by one `credentials` or `vp` invocation can be correlated.
"""

DEFAULT_LOGGER_NAME = "gaiax_credentials"


class RunIdFilter(logging.Filter):
    """Adds a `run_id` attribute to every record passing through the handler."""

    def __init__(self, run_id: Optional[str] = None):
        super().__init__()
        self.run_id = run_id or str(uuid4())

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = self.run_id
        return True


def configure_logging(settings: "Settings", run_id: Optional[str] = None) -> str:
    """Configures application-wide logging.

    Sets up logging format (JSON or text), level, and handlers based on `settings`.
    Returns the run identifier stamped on the records.
    """
    log_format = settings.log_format.lower()
    if log_format not in ["json", "text"]:
        # Fallback to text if an invalid format is specified; logging is not configured yet.
        print(f"WARNING: Invalid log_format '{settings.log_format}' in settings. Falling back to 'text'.")
        log_format = "text"

    run_id = run_id or str(uuid4())
    level = settings.log_level.upper()
    app_logger = settings.app_name or DEFAULT_LOGGER_NAME

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "run_id": {
                "()": RunIdFilter,
                "run_id": run_id,
            }
        },
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s %(run_id)s",
                "rename_fields": {"levelname": "level", "asctime": "timestamp"},
            },
            "text": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(run_id)s] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": log_format,
                "filters": ["run_id"],
                "level": level,
                # stdout carries the command output
                "stream": "ext://sys.stderr"
            }
        },
        "loggers": {
            app_logger: {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "httpx": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        }
    }
    if app_logger != DEFAULT_LOGGER_NAME:
        logging_config["loggers"][DEFAULT_LOGGER_NAME] = dict(logging_config["loggers"][app_logger])
    logging.config.dictConfig(logging_config)
    return run_id


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger in the `gaiax_credentials` hierarchy.

    Args:
        name: The name for the logger, usually `__name__`. Defaults to 'gaiax_credentials'.

    Returns:
        A `logging.Logger` instance, configured once `configure_logging()` has run.
    """
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)
