"""Retry logic with exponential backoff for platform API rate limits.

This module provides retry functionality specifically for handling 429 rate limit
responses from the backend. It implements exponential backoff (1s, 2s, 4s)
and fails fast for non-rate-limit errors. It runs inside the worker thread
that performs the blocking request, so sleeping never stalls the event loop.
"""

import time
import logging
from typing import Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on 429 rate limit with exponential backoff.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If rate limit persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> result = retry_on_rate_limit(session.get, url)
    """
    for retry_num in range(MAX_RETRIES + 1):  # 0, 1, 2, 3 = 4 attempts total
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RETRIES} retries, giving up"
                )
                raise APIAccessError(f"Platform API failure (after {MAX_RETRIES} retries)")

            wait_time = 2 ** retry_num
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            time.sleep(wait_time)

    raise APIAccessError(f"Platform API failure (after {MAX_RETRIES} retries)")


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a rate limit (429) error.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a rate limit error, False otherwise
    """
    if getattr(exception, 'status_code', None) == 429:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    # Only specific phrases; "rate limit" alone shows up in unrelated messages
    error_msg = str(exception).lower()
    rate_limit_patterns = [
        'too many requests',
        'rate limit exceeded',
        'rate limited',
    ]
    return any(pattern in error_msg for pattern in rate_limit_patterns)
