import logging
import os
import sys

from loguru import logger

import config

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} {extra}"
)


class InterceptHandler(logging.Handler):
    """Hand flask/werkzeug records over to loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level=None, log_dir=None):
    """
    Console sink at LOG_LEVEL, plus a daily analytics_YYYY-MM-DD.log file when
    LOG_DIR is set. Call once, from the process entry point.
    """
    level = level or config.LOG_LEVEL
    log_dir = log_dir or config.LOG_DIR

    for name in ("flask", "werkzeug"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False

    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            os.path.join(log_dir, "analytics_{time:YYYY-MM-DD}.log"),
            format=LOG_FORMAT,
            level=level,
            rotation="00:00",
            retention="7 days",
        )


def get_logger(**binds):
    """logger = get_logger(module="weekly")"""
    return logger.bind(**binds)
