import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name="accounting", level=logging.INFO):
    """
    Console logger for the data store. When the host application (or pytest)
    already configured the root logger, records just propagate there.
    """
    logger = logging.getLogger(name)
    if not logger.handlers and not logging.getLogger().handlers:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(ch)
    logger.setLevel(level)
    return logger
