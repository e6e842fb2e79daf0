# log.py
import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def resolve_level(level: str) -> str:
    level = (level or "INFO").upper()
    # unknown level names fall back to INFO
    if not isinstance(logging.getLevelName(level), int):
        return "INFO"
    return level


def _make_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_handler)
    logger.setLevel(resolve_level(os.getenv("LOG_LEVEL", "INFO")))
    logger.propagate = False
    return logger


log_general = _make_logger("rayswap")
log_transaction = _make_logger("rayswap.transaction")


def set_level(level: str) -> None:
    level = resolve_level(level)
    for logger in (log_general, log_transaction):
        logger.setLevel(level)
