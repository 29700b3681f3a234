"""
Centralized logging configuration.

Every record carries the ID of the request that produced it, so one job's
trip through receive/process/approve can be followed across the log files.

Handlers:
- console, at cfg.LOG_LEVEL
- rotating <LOG_DIR>/app.log with everything
- <LOG_DIR>/errors.log with ERROR and above
"""

import logging
import logging.config
import os

from commons import request_id_ctx
from configs.config import get_config

cfg = get_config()

LOG_FORMAT = "%(asctime)s [%(request_id)s] %(name)s %(levelname)s: %(message)s"

# SDK loggers that are chatty at DEBUG (wire dumps, retries, signing)
NOISY_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "httpx", "httpcore", "openai")


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` from the current request context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        return True


def setup_logging() -> None:
    """Configure logging once at application startup."""
    os.makedirs(cfg.LOG_DIR, exist_ok=True)

    file_handler = {
        "formatter": "default",
        "filters": ["request_id"],
        "encoding": "utf8",
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": cfg.LOG_LEVEL,
                    "formatter": "default",
                    "filters": ["request_id"],
                },
                "app_log_handler": {
                    **file_handler,
                    "class": "logging.handlers.RotatingFileHandler",
                    "level": "DEBUG",
                    "filename": os.path.join(cfg.LOG_DIR, cfg.LOG_FILE_APP),
                    "maxBytes": cfg.LOG_MAX_BYTES,
                    "backupCount": cfg.LOG_BACKUP_COUNT,
                },
                "error_log_handler": {
                    **file_handler,
                    "class": "logging.FileHandler",
                    "level": "ERROR",
                    "filename": os.path.join(cfg.LOG_DIR, cfg.LOG_FILE_ERRORS),
                },
            },
            "loggers": {name: {"level": "WARNING"} for name in NOISY_LOGGERS},
            "root": {
                "level": "DEBUG",
                "handlers": ["console", "app_log_handler", "error_log_handler"],
            },
        }
    )
    logging.getLogger(__name__).info(
        "Logging configured (console %s, files in %s)", cfg.LOG_LEVEL, cfg.LOG_DIR
    )
