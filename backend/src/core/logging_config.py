"""
Structured Logging Configuration
Loguru sinks for the API and the background consumers, with stdlib loggers
(uvicorn, SQLAlchemy, redis, asyncio) routed through them
"""
import sys
import logging
from typing import Dict, Optional

from loguru import logger

from .config import settings


HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
PLAIN_FORMAT = "{time} | {level} | {extra[service]} | {name}:{function}:{line} | {message}"

# Third-party loggers and the level they are capped at; None keeps LOG_LEVEL
INTERCEPTED_LOGGERS: Dict[str, Optional[str]] = {
    "uvicorn": None,
    "uvicorn.access": None,
    "uvicorn.error": None,
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "redis": None,
    "asyncio": "WARNING",
}


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to Loguru, keeping the caller's location"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module to the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def json_output() -> bool:
    """JSON lines are written only in production"""
    return settings.LOG_JSON_FORMAT and settings.ENVIRONMENT == "production"


def _add_console_sink(as_json: bool) -> None:
    if as_json:
        # JSON lines for log shipping
        logger.add(sys.stdout, format=PLAIN_FORMAT, level=settings.LOG_LEVEL, serialize=True)
    else:
        # Human-readable format for development
        logger.add(sys.stdout, format=HUMAN_FORMAT, level=settings.LOG_LEVEL, colorize=True)


def _add_file_sink(as_json: bool) -> None:
    logger.add(
        settings.LOG_FILE_PATH,
        rotation="00:00",  # Rotate daily
        retention=settings.LOG_FILE_RETENTION,
        level=settings.LOG_LEVEL,
        format=PLAIN_FORMAT,
        serialize=as_json,
    )


def _intercept_std_logging() -> None:
    # Intercept standard logging
    handler = InterceptHandler()
    logging.basicConfig(handlers=[handler], level=0, force=True)

    # Intercept uvicorn, sqlalchemy, redis and asyncio logs
    for name, cap in INTERCEPTED_LOGGERS.items():
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False
        # SQL echo is only wanted while debugging
        if cap is None or (settings.DEBUG and name.startswith("sqlalchemy")):
            std_logger.setLevel(logging.NOTSET)
        else:
            std_logger.setLevel(cap)


def configure_logging() -> None:
    """(Re)build every sink from current settings; safe to call more than once"""
    as_json = json_output()

    # Drop previous sinks, then tag every record with the service and environment
    logger.remove()
    logger.configure(extra={"service": settings.APP_NAME, "environment": settings.ENVIRONMENT})

    # Add console logger
    _add_console_sink(as_json)

    # Add file logger
    if settings.LOG_FILE_ENABLED:
        _add_file_sink(as_json)

    _intercept_std_logging()

    logger.info(f"📝 Logging configured: level={settings.LOG_LEVEL}, json={as_json}, file={settings.LOG_FILE_ENABLED}")


configure_logging()
