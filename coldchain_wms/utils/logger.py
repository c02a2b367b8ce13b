"""
Logging configuration
"""
import logging
import sys
from typing import Optional

from coldchain_wms.config import get_settings


def get_logger(name: str, debug: Optional[bool] = None) -> logging.Logger:
    """Get a configured logger instance"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if debug is None:
        debug = get_settings().DEBUG
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger
