#!/usr/bin/env python3
"""Logging entry point for applications embedding soap_api.

The library only creates module loggers; call ``setup_logging()`` once at
process start to emit JSON records. Schema generation logs carry
``operation`` and ``direction`` extra fields, which become JSON keys.
"""

import logging
import logging.config
from typing import Optional

from pythonjsonlogger import jsonlogger

from .env_utils import getenv_clean


def setup_logging(level: Optional[str] = None):
    """Setup JSON logging configuration

    Args:
        level: Log level name, defaults to SOAP_LOG_LEVEL or INFO
    """
    level = (level or getenv_clean("SOAP_LOG_LEVEL", "INFO")).upper()
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s %(operation)s %(direction)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout"
            }
        },
        "loggers": {
            "soap_api": {
                "handlers": ["console"],
                "level": level,
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)
