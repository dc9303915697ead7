"""Logging configuration for blobby and blobby-server."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request at INFO; our client already does
NOISY_LOGGERS = ("httpx", "httpcore")


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(verbose: int = 0, log_file: Path | None = None, name: str = "blobby") -> None:
    """Configure the ``blobby`` logger from verbosity and an optional file.

    Calling it again replaces the handlers of the previous call.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2+=DEBUG)
        log_file: Optional path to write logs to file
        name: Program name shown in the startup line (e.g. "blobby-server")
    """
    if verbose == 0 and log_file is None:
        return

    level = logging.DEBUG if verbose >= 2 else logging.INFO

    logger = logging.getLogger("blobby")
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if verbose > 0:
        logger.addHandler(_handler(logging.StreamHandler(sys.stderr), level))

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file), level))

    if verbose < 3:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("")
    logger.info("=" * 60)
    logger.info("%s starting | %s | level=%s", name, timestamp, logging.getLevelName(level))
    logger.info("=" * 60)
