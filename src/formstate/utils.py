"""Utility functions for formstate"""

import asyncio
import logging
from functools import wraps
from pathlib import Path
from typing import Callable, Literal, Optional, Tuple, Type

logger = logging.getLogger(__name__)


BackoffStrategy = Literal["exponential", "fixed"]


def canonicalify(p: Path | str) -> Path:
    return Path(p).expanduser().resolve()


def ensure_path(p: Path | str) -> Path:
    path = canonicalify(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def retry_async(
    times: int,
    initial_delay: float = 1,
    backoff: BackoffStrategy = "exponential",
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[tuple, dict, Exception, int], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
):
    """Retry a coroutine function on failure.

    Args:
        times: Total number of attempts (1 means no retry)
        initial_delay: Seconds to wait before the first retry
        backoff: "exponential" doubles the delay after every retry,
            "fixed" keeps it constant
        exceptions: Exception types that trigger a retry
        on_retry: Called with (args, kwargs, exception, attempt) before sleeping
        should_stop: Checked before every retry; when it returns True the
            last exception is raised immediately
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(times):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    is_last_attempt = attempt == times - 1
                    error_msg = str(e)[:100]

                    if is_last_attempt:
                        logger.error(f"Operation failed, max retries ({times}) reached")
                        raise

                    if should_stop is not None and should_stop():
                        logger.debug("Operation failed and retrying was stopped")
                        raise

                    logger.warning(
                        f"Operation failed (attempt {attempt + 1}/{times}), "
                        f"retrying in {delay}s. Error: {error_msg}"
                    )

                    if on_retry:
                        on_retry(args, kwargs, e, attempt + 1)

                    await asyncio.sleep(delay)

                    if backoff == "exponential":
                        delay *= 2

        return wrapper

    return decorator
