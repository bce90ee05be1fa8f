"""
Logging configuration for sc_datamine.

The extraction JSON may be written to stdout, so log records go to stderr.
"""

import logging
import sys
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..settings import AppSettings

LOG_FORMAT = "%(asctime)s : %(levelname)-8s : %(name)s : %(message)s"
DATE_FORMAT = "%H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter coloring the level name by severity."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = self.COLORS.get(record.levelno)
        if color is None:
            return formatted
        return formatted.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


def setup_logging(settings: "AppSettings", level: Optional[str] = None) -> logging.Handler:
    """
    Route the project's log records to stderr.

    Args:
        settings: AppSettings holding the default level and color choice
        level: Level for this run only, overriding the configured one

    Returns:
        The installed handler
    """
    level_name = (level or settings.log_level).upper()
    use_colors = settings.use_colors and sys.stderr.isatty()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level_name, logging.INFO))
    formatter_class = ColoredFormatter if use_colors else logging.Formatter
    handler.setFormatter(formatter_class(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    project_logger = logging.getLogger("sc_datamine")
    project_logger.setLevel(logging.DEBUG)
    project_logger.handlers.clear()
    project_logger.addHandler(handler)

    logging.getLogger(__name__).debug(f"Logging to stderr at {level_name} (colors: {use_colors})")
    return handler
