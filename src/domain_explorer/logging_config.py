"""Logging configuration for the domain explorer."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Send explorer logs to stderr.

    `verbose` shows layout and fetch details; `quiet` keeps only warnings and
    errors, which suits piping `--json` output.
    """
    logger.remove()
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
