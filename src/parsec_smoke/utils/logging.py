import logging
import sys


def get_logger():
    logger = logging.getLogger("parsec_smoke")
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(message)s")
        h.setFormatter(fmt)
        logger.addHandler(h)
        logger.setLevel(logging.INFO)
    return logger


def set_debug(enabled: bool):
    get_logger().setLevel(logging.DEBUG if enabled else logging.INFO)
