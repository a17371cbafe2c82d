"""Retry transient store failures with exponential backoff."""

import logging
import time
from typing import Callable, TypeVar

from booking.domain.errors import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_DELAY = 5.0


def call_with_retry(
    func: Callable[..., T],
    *args,
    attempts: int = 3,
    delay: float = 0.2,
    **kwargs,
) -> T:
    """Call func, retrying only on TransientStoreError.

    Capacity and validation errors propagate on the first attempt.
    """
    func_name = getattr(func, "__name__", str(func))
    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except TransientStoreError:
            logger.warning(
                "Attempt %s/%s for %s failed with a transient store error",
                attempt,
                attempts,
                func_name,
            )
            if attempt == attempts:
                raise
            time.sleep(delay)
            delay = min(delay * 2, MAX_DELAY)
    raise AssertionError("unreachable")
