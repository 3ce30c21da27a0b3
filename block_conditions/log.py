import logging

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "block_conditions"


def verbosity_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbose: int = 0, console: Console | None = None) -> None:
    """Send package logs to stderr through rich; library code only logs."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose >= 2,
    )
    logger.addHandler(handler)
    logger.setLevel(verbosity_level(verbose))
