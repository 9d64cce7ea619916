import logging
import sys
from typing import Optional, TextIO


logger = logging.getLogger("shoptrace")


def configure_logging(debug: bool, stream: Optional[TextIO] = None):
    """
    Route shoptrace log records to ``stream`` (stdout by default).

    Debug mode lowers the level to DEBUG, which also shows every tracked
    action and metric update. Calling this again only changes the level.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.hasHandlers():
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
