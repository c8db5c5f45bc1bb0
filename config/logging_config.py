import logging
import sys

from config.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = None) -> None:
    """Send every passgate logger to stdout at the configured level."""
    root = logging.getLogger()
    root.setLevel(level or settings.LOG_LEVEL)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.handlers.clear()
    root.addHandler(handler)
