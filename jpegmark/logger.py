import logging
import os
import sys

LOGGER_NAME = "jpegmark"
LEVEL_ENV = "JPEGMARK_LOG_LEVEL"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """Create or update the project logger.

    Safe to call repeatedly: the level is re-read from JPEGMARK_LOG_LEVEL on
    every call and exactly one stderr handler is kept on the base logger.
    """
    logger = logging.getLogger(LOGGER_NAME)

    env_level = (os.getenv(LEVEL_ENV) or "").strip().lower()
    logger.setLevel(_LEVELS.get(env_level, level))

    handler = None
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr:
            handler = h
            break

    if handler is None:
        handler = logging.StreamHandler(stream=sys.stderr)
        logger.addHandler(handler)

    handler.setFormatter(
        logging.Formatter(fmt="[%(asctime)s] %(levelname)s: %(message)s", datefmt="%H:%M:%S")
    )

    logger.propagate = False
    return logger


def get_logger(name: str = "") -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
