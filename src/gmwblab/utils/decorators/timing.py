import logging
import time
from functools import wraps

logger = logging.getLogger(__name__)


def timeit(fn):
    """Decorator to log the execution time of a function in milliseconds."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = fn(*args, **kwargs)
        dt_ms = (time.perf_counter() - start) * 1000.0
        logger.info("[timing] %s: %.2f ms", fn.__name__, dt_ms)
        return result

    return wrapper
