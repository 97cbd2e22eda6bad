"""
Logging setup for the bot and its HTTP stack.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every request or connection at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp.access")


def setup_logging(level: int = logging.INFO) -> None:
    """
    Route all records to stdout at ``level``.

    Request-level chatter from the HTTP libraries is only shown when
    ``level`` is WARNING or stricter.
    """
    logging.basicConfig(format=LOG_FORMAT, level=level, stream=sys.stdout)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
