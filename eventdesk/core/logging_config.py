import logging
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from .settings import settings

JSON_LOG_FORMAT = (
    "%(levelname)s %(asctime)s %(message)s %(name)s "
    "%(processName)s %(filename)s %(lineno)d"
)
TEXT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(
    level: Optional[str] = None, log_format: Optional[str] = None
) -> None:
    level = level or settings.monitoring.LOG_LEVEL
    log_format = log_format or settings.monitoring.LOG_FORMAT

    log_handler = logging.StreamHandler()
    if log_format == "json":
        log_handler.setFormatter(
            JsonFormatter(
                JSON_LOG_FORMAT,
                rename_fields={
                    "levelname": "level",
                    "asctime": "time",
                    "name": "loggerName",
                    "lineno": "lineNumber",
                },
            )
        )
    else:
        log_handler.setFormatter(logging.Formatter(TEXT_LOG_FORMAT))

    logging.basicConfig(handlers=[log_handler], level=level.upper())
