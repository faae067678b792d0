from gmwblab.common.config import (
    PROJECT_NAME,
    LOG_LEVEL,
    EPSILON,
    DEFAULT_TOLERANCE,
    DEFAULT_MAX_ITERATIONS,
)
from gmwblab.common.logging_config import setup_logging

__all__ = [
    "PROJECT_NAME",
    "LOG_LEVEL",
    "EPSILON",
    "DEFAULT_TOLERANCE",
    "DEFAULT_MAX_ITERATIONS",
    "setup_logging",
]
