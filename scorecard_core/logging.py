"""
Centralized logging configuration for scorecard.
Initializes loguru and intercepts standard library logging.
"""

import logging
import sys

from loguru import logger

from scorecard_core.config import settings


class InterceptHandler(logging.Handler):
    """
    Routes standard library log records (openai, httpx) into loguru.
    See: https://loguru.readthedocs.io/en/stable/overview.html#entirely-compatible-with-standard-logging
    """

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the stdlib call
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None) -> None:
    """
    Configures loguru to handle all logs and output them to stdout.

    Args:
        level: Minimum level for the stdout sink. Defaults to settings.LOG_LEVEL.
    """
    logger.remove()

    logger.add(
        sys.stdout,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
            "<magenta>{extra[run_id]}</magenta> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        ),
        level=(level or settings.LOG_LEVEL).upper(),
        colorize=True,
    )
    logger.configure(extra={"run_id": "-"})

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # The SDKs log every request at INFO; keep them at WARNING
    for name in ["openai", "httpx", "httpcore"]:
        _logger = logging.getLogger(name)
        _logger.handlers = [InterceptHandler()]
        _logger.setLevel(logging.WARNING)
        _logger.propagate = False

    logger.info(f"Logging initialized for {settings.SERVICE_NAME}.")
