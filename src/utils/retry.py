"""
Retry utilities for handling transient database errors.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import pyodbc

logger = logging.getLogger(__name__)

T = TypeVar("T")


# SQLSTATE codes that represent transient errors worth retrying.
# All other pyodbc errors (syntax, missing table, permission, etc.) are permanent.
_TRANSIENT_SQLSTATES: frozenset[str] = frozenset({
    "HYT00",  # Timeout expired
    "HYT01",  # Connection timeout expired
    "08S01",  # Communication link failure
    "08001",  # Unable to connect to data source
    "08007",  # Connection failure during transaction
    "40001",  # Deadlock victim
})


def is_transient_pyodbc_error(exception: BaseException) -> bool:
    """Check if a pyodbc.Error is transient and worth retrying.

    Extracts the SQLSTATE from exception.args[0] and checks it against
    the known set of transient error codes. Returns False for permanent
    errors like 42S02 (table not found), 42000 (syntax error), etc.
    """
    if not isinstance(exception, pyodbc.Error):
        return False
    if exception.args and isinstance(exception.args[0], str):
        sqlstate = exception.args[0].strip()
        if sqlstate in _TRANSIENT_SQLSTATES:
            return True
    # Fallback: check string representation for known transient patterns
    error_str = str(exception)
    return any(code in error_str for code in _TRANSIENT_SQLSTATES)


def is_retryable(exception: BaseException) -> bool:
    """Transient DB errors and timeouts are retried, everything else is not."""
    return isinstance(exception, (TimeoutError, asyncio.TimeoutError)) or is_transient_pyodbc_error(
        exception
    )


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 5,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
) -> T:
    """
    Execute an async function, retrying transient errors with exponential backoff.

    Args:
        func: Async function to execute (no parameters)
        max_retries: Number of retries after the first attempt
        initial_delay: Delay in seconds before the first retry
        backoff_factor: Multiplier for delay between retries
        max_delay: Upper bound for a single wait

    Returns:
        Result from the function

    Raises:
        Exception: The last error once retries are exhausted, or any
            non-retryable error immediately
    """
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if not is_retryable(e) or attempt >= max_retries:
                raise

            wait_time = min(initial_delay * (backoff_factor**attempt), max_delay)
            attempt += 1
            logger.warning(
                "Transient DB error detected (%s). Retry %s/%s in %.1f seconds...",
                e,
                attempt,
                max_retries,
                wait_time,
            )
            await asyncio.sleep(wait_time)
