# src/gmwblab/common/logging_config.py

import logging

from gmwblab.common.config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


""" Example usage:

from gmwblab.common.logging_config import setup_logging

setup_logging()  # call once on app start
logger = logging.getLogger(__name__)

"""
