"""
Logging configuration for the command line.
"""

import logging

from rich.logging import RichHandler


def setup_logging(verbose: bool = False) -> None:
    """
    Configure the root logger once, with rich formatting.

    Args:
        verbose: Log DEBUG and above instead of WARNING and above
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )
