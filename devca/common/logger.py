# devca/common/logger.py
import logging
import sys


def get_logger(name="devca", level=None):
    """Shared logger for devca; messages go to stderr so stdout stays clean."""
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)

    root = logging.getLogger("devca")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt="%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
        if root.level == logging.NOTSET:
            root.setLevel(logging.WARNING)

    return logger
