"""Logging configuration for outline-search."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Send loguru output to stderr.

    ``verbose`` adds debug lines (documents indexed, result counts);
    ``quiet`` keeps only warnings and errors, for the stdio MCP server.
    """
    logger.remove()
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
