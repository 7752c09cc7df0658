"""
Bounded retry with backoff for single store writes.
"""
import logging
import time
from typing import Callable, Tuple, Type, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_with_backoff(
    operation: Callable[[], T],
    attempts: int = 3,
    delay: float = 0.2,
    backoff: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    never_retry: Tuple[Type[BaseException], ...] = (),
    on_retry: Callable[[int, BaseException], None] = None,
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call operation until it succeeds or attempts run out.

    Args:
        operation: Zero-argument callable to execute
        attempts: Total number of tries (at least 1)
        delay: Seconds to wait before the second try
        backoff: Multiplier applied to the delay after each failure (1.0 = fixed delay)
        retry_on: Exception types that trigger another try; anything else propagates
        never_retry: Subclasses of retry_on that propagate on the first failure
        on_retry: Called with (attempt_number, error) before sleeping, e.g. to roll back a session
        operation_name: Label used in log messages
        sleep: Sleep function, replaceable in tests

    Returns:
        The operation's return value

    Raises:
        The last error once all attempts have failed
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    retry = retry_if_exception_type(retry_on)
    if never_retry:
        retry = retry & retry_if_not_exception_type(never_retry)

    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception()
        logger.warning(
            f"{operation_name} failed (attempt {state.attempt_number}/{attempts}), "
            f"retrying in {state.next_action.sleep:.2f}s: {error}"
        )
        if on_retry is not None:
            on_retry(state.attempt_number, error)

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=delay, exp_base=backoff) if backoff > 1 else wait_fixed(delay),
        retry=retry,
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=True,
    )
    try:
        return retrying(operation)
    except retry_on as e:
        if isinstance(e, never_retry):
            raise
        logger.error(f"{operation_name} failed after {attempts} attempts: {e}")
        raise
