"""Logging configuration for pnpm-injected-sync."""

import logging
from enum import IntEnum

from rich.console import Console
from rich.logging import RichHandler


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    debug: bool = False,
) -> Console:
    """Configure logging based on CLI options.

    Coordination messages share stderr with the wrapped command's own
    output, so the handler writes to a stderr console and keeps the
    time/path columns off unless debugging.

    Args:
        verbosity: Number of -v flags (0=normal, 1=verbose, 2+=debug)
        quiet: Only report warnings and errors (takes precedence)
        no_color: Disable colored output
        debug: Enable debug logging (equivalent to -vv)

    Returns:
        Configured Rich console for output
    """
    if quiet:
        level = LogLevel.QUIET
    elif debug or verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    detailed = not quiet and (debug or verbosity >= 2)

    console = Console(
        stderr=True,
        force_terminal=not no_color,
        no_color=no_color,
    )

    handler = RichHandler(
        console=console,
        show_time=detailed,
        show_path=detailed,
        show_level=detailed,
        markup=False,
    )

    logging.basicConfig(
        level=level,
        format="[sync] %(message)s",
        handlers=[handler],
        force=True,
    )

    # watchdog is chatty at DEBUG
    logging.getLogger("watchdog").setLevel(max(level, logging.INFO))

    return console
