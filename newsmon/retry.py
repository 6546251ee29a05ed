from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .logging_setup import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")


@dataclass
class RetryResult(Generic[T]):
    value: Optional[T]
    attempts: int
    last_error: Optional[str] = None


def backoff_delay(attempt: int, base_delay_s: float) -> float:
    """Delay after failed attempt ``attempt`` (1-based): base * 2^(attempt-1)."""
    return base_delay_s * (2 ** (attempt - 1))


def run_with_retry(
    attempt_fn: Callable[[], T],
    max_attempts: int,
    base_delay_s: float,
    sleep: Callable[[float], None] = time.sleep,
) -> RetryResult[T]:
    """Call attempt_fn until it succeeds or the attempt budget runs out.

    Exhausting the budget is not an error: the result carries value=None and
    the last failure message.
    """
    last_error: Optional[str] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return RetryResult(value=attempt_fn(), attempts=attempt)
        except Exception as exc:
            last_error = str(exc) or type(exc).__name__
            logger.warning("Attempt %s/%s failed: %s", attempt, max_attempts, last_error)
            if attempt < max_attempts:
                delay = backoff_delay(attempt, base_delay_s)
                logger.info("Retrying in %.1fs...", delay)
                sleep(delay)
    return RetryResult(value=None, attempts=max_attempts, last_error=last_error)
