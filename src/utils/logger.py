"""Logging configuration for the command-line tools."""

import logging
import sys


def setup_logger(verbose: bool = False) -> logging.Logger:
    """Configure the root logger and return the ``src`` logger.

    Library modules only create module-level loggers; handlers are attached
    here, once, by whichever entrypoint runs.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(handler)
    return logging.getLogger("src")
