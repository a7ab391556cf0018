# storefront/utils/logging.py
import logging
import sys

from storefront.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """
    One logger per module, the stdout handler is attached only once.
    """
    logger = logging.getLogger(name or "storefront")
    logger.setLevel(LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler.setLevel(LOG_LEVEL)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
