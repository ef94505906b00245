"""Logging configuration shared by the bookstore services."""

import sys
from typing import Optional

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def setup_service_logger(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    serialize: bool = False,
) -> loguru_logger:
    """Configure a logger for a service with standardized settings.

    Args:
        service_name: Name of the service (e.g., 'bookstore-service')
        log_level: Logging level (default: INFO)
        log_file: Optional path to log file
        serialize: Emit JSON lines on stderr instead of the coloured format

    Returns:
        logger: Configured loguru logger instance
    """
    loguru_logger.remove()
    loguru_logger.configure(extra={"service": service_name})

    if serialize:
        loguru_logger.add(sys.stderr, level=log_level, serialize=True, enqueue=True)
    else:
        loguru_logger.add(
            sys.stderr,
            level=log_level,
            format=CONSOLE_FORMAT,
            colorize=True,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    if log_file:
        loguru_logger.add(
            log_file,
            level=log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="1 week",
            compression="gz",
        )

    return loguru_logger.bind(service=service_name)


def get_kafka_logger(service_name: str) -> loguru_logger:
    """Get a logger bound to the Kafka context of a service.

    Sinks are left untouched; ``setup_service_logger`` owns them.

    Args:
        service_name: Name of the service

    Returns:
        logger: Logger bound with the Kafka context
    """
    return loguru_logger.bind(service=f"{service_name}.kafka")
