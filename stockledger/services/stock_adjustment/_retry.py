"""
Lock-contention retry for single-row stock writes.

Only errors the database reports as lock or serialization conflicts are
retried; anything else is raised on the first attempt.
"""

import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

LOCK_ERROR_MARKERS = (
    'database is locked',
    'database table is locked',
    'lock_not_available',
    'could not obtain lock',
    'deadlock detected',
    'lock wait timeout',
    'could not serialize access',
)


def is_lock_contention(error: BaseException) -> bool:
    message = str(getattr(error, 'orig', None) or error).lower()
    return any(marker in message for marker in LOCK_ERROR_MARKERS)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, DBAPIError) and is_lock_contention(error)


def _log_contention(max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        logger.warning(
            "Stock row lock contention (attempt %s/%s); retrying in %.3fs: %s",
            retry_state.attempt_number, max_attempts, retry_state.next_action.sleep,
            getattr(exc, 'orig', exc),
        )
    return before_sleep


def with_lock_retry(
    operation: Callable[[], T],
    *,
    max_attempts: int = 5,
    initial_delay: float = 0.05,
    max_delay: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation`` and retry it while the database reports lock contention.

    Waits grow exponentially from ``initial_delay`` with full jitter, capped at
    ``max_delay``. ``operation`` must leave the session clean (rolled back)
    before raising.
    """
    max_attempts = max(1, max_attempts)
    retrying = Retrying(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(max_attempts),
        wait=wait_random_exponential(multiplier=initial_delay, max=max_delay),
        before_sleep=_log_contention(max_attempts),
        sleep=sleep,
        reraise=True,
    )
    return retrying(operation)
