"""Console logging setup for the courier CLI."""

import logging
import sys

__all__ = ["configure_logs"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%d/%m/%y %H:%M:%S"


def configure_logs(level: int = logging.DEBUG) -> None:
    """Send logs to stderr so stdout only carries the response.

    Sets up:
    - Root logger at INFO level with a single stderr handler, even when
      called more than once.
    - Framework loggers (aiohttp, asyncio) at WARNING level.
    - Application loggers (courier) at *level*.

    Args:
        level: Level for the ``courier`` loggers.
    """
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    if not any(getattr(h, "_courier", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler._courier = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger("courier").setLevel(level)
