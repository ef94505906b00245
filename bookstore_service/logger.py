"""Service logger, configured once from the environment."""

from logging_utils.config import setup_service_logger

from . import config

logger = setup_service_logger(
    config.SERVICE_NAME,
    log_level=config.LOG_LEVEL,
    log_file=config.LOG_FILE,
    serialize=config.LOG_JSON,
)

__all__ = ["logger"]
