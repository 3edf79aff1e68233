"""structlog setup for applications embedding the tessellation engine.

The library itself only calls structlog.get_logger(); nothing is configured
on import.
"""

import logging
from typing import Optional

import structlog

from .config import get_settings


def configure_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    settings = get_settings()
    level = (level or settings.log_level).upper()
    json = settings.log_json if json is None else json

    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
