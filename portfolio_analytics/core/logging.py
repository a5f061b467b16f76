"""
Logging configuration.

Text output in development, JSON lines in production (or when
LOG_FORMAT=json) so log aggregation tools can parse the ``extra`` fields.

Usage:
    from portfolio_analytics.core.logging import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Snapshot created", extra={"wallet_id": wallet_id})
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from portfolio_analytics.core.config import Settings, settings as default_settings

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure the root logger once for the whole process."""
    config = config or default_settings
    use_json = config.LOG_FORMAT == "json" or config.is_production

    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                JSON_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

    # Silence noisy loggers in production
    if config.is_production:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
