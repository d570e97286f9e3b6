"""Simple logging utility.

Provides a lightweight wrapper around Python's standard logging
module so that every stage of the georeferencing, thinning and join
pipeline reports progress and discard statistics in the same format.
"""

import logging
from typing import Optional


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a configured logger with a preset format.

    Parameters
    ----------
    name : str
        Logger name, usually the module ``__name__``.
    level : int, optional
        Logging level to set.  Defaults to ``logging.INFO`` the first
        time a logger is configured.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    if level is not None:
        logger.setLevel(level)
    return logger
