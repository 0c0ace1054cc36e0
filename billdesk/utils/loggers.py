import logging
import os

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name="billdesk", level=None):
    """
    Logger with one stream handler. The level comes from `level`, else
    BILLDESK_LOG_LEVEL, else INFO.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(ch)
    wanted = level or os.environ.get("BILLDESK_LOG_LEVEL") or "INFO"
    logger.setLevel(wanted if isinstance(wanted, int) else str(wanted).upper())
    return logger
