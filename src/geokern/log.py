"""Logging setup for geokern.

The kernel logs through loguru.  The package logger is disabled on import
so that library use stays silent; applications and debugging sessions call
:func:`setup_logging` to turn it on.
"""

import sys

from loguru import logger

LOG_FORMAT = "<level>{level: <8}</level> | {name}:{function} | {message}"


def setup_logging(level="INFO", sink=sys.stderr):
    """Route geokern log records to *sink* at *level* and above.

    Returns the loguru handler id so callers can remove it again.
    """
    logger.remove()
    handler_id = logger.add(sink, format=LOG_FORMAT, level=level)
    logger.enable("geokern")
    return handler_id
