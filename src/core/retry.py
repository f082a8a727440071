"""Retry policy for widget apply commands.

By default a rejected command is not retried: the next interaction
re-issues the full desired state anyway. Retries can be enabled through
``FILTERSYNC_APPLY_RETRIES``.
"""

from pathlib import Path
from typing import Awaitable, Callable, TypeVar
import sys

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.core.errors import ApplyFailure, WidgetNotReady

logger = get_logger("retry")

T = TypeVar("T")


async def apply_with_policy(
    operation: Callable[[], Awaitable[T]],
    description: str,
    retries: int = 0,
    backoff_ms: int = 200,
) -> T:
    """
    Run an async widget command under the retry policy.

    Args:
        operation: Zero-argument coroutine factory issuing the command.
        description: Name used in logs and in ApplyFailure.
        retries: Extra attempts after the first one.
        backoff_ms: Base delay of the exponential backoff between attempts.

    Returns:
        Whatever the command returns.

    Raises:
        WidgetNotReady: Passed through untouched, never retried.
        ApplyFailure: When every attempt failed.
    """
    backoff = backoff_ms / 1000.0
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(retries, 0) + 1),
            wait=wait_exponential(multiplier=backoff, min=backoff, max=backoff * 8),
            retry=retry_if_not_exception_type(WidgetNotReady),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(f"Retrying {description} (attempt {attempt.retry_state.attempt_number})")
                return await operation()
    except WidgetNotReady:
        raise
    except RetryError as e:
        raise ApplyFailure(description, e.last_attempt.exception()) from e
    except Exception as e:
        raise ApplyFailure(description, e) from e
