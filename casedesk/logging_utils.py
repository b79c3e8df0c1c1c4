# casedesk/logging_utils.py

import logging
import os
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"


def _resolve_level() -> int:
    # CASEDESK_LOG_LEVEL wins over the generic LOG_LEVEL
    level_name = os.getenv("CASEDESK_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
    return getattr(logging, level_name.upper(), logging.INFO)


def get_logger(name: str = "casedesk") -> logging.Logger:
    """Return a stdout logger for ``name``, configuring it once."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(_resolve_level())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
