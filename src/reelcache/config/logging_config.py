"""
Logging setup for the API server and CLI.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process.

    Parameters
    ----------
    level : str
        Log level name (already validated by ``Settings``).
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
