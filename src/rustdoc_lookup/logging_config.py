"""Logging setup shared by the CLI and the MCP server."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Route loguru output to stderr.

    stdout is reserved for lookup results (and for the MCP stdio transport),
    so the only sink is stderr. ``quiet`` keeps warnings and errors only.
    """
    logger.remove()
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}", colorize=False)
