"""
Asynchronous utilities for netcontrol.

This module provides the retry policy used for checkpoint writes and a helper
to run blocking work off the event loop.
"""

import asyncio
import functools
import inspect
import random
import uuid
from typing import Any, Callable, Optional, Tuple, Type, TypeVar, Union

from netcontrol.utils.logging import logger

T = TypeVar("T")


class RetryPolicy:
    """Policy for retrying failed operations."""

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 0.1,
        max_delay: float = 10.0,
        backoff_factor: float = 2.0,
        jitter: bool = True,
    ):
        """Initialize the retry policy.

        Args:
            max_retries: Maximum number of retry attempts
            initial_delay: Initial delay between retries in seconds
            max_delay: Maximum delay between retries in seconds
            backoff_factor: Factor by which the delay increases each retry
            jitter: Whether to add randomness to the delay
        """
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter

    def get_delay(self, attempt: int) -> float:
        """Calculate the delay for a retry attempt.

        Args:
            attempt: Retry attempt number (0-based)

        Returns:
            Delay in seconds
        """
        delay = min(
            self.max_delay,
            self.initial_delay * (self.backoff_factor ** attempt)
        )

        if self.jitter:
            # Up to 25% jitter, never negative
            jitter_amount = delay * 0.25
            delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))

        return delay


async def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    exceptions: Union[Type[BaseException], Tuple[Type[BaseException], ...]] = Exception,
    give_up_on: Tuple[Type[BaseException], ...] = (),
    operation: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """Call a function, retrying on the given exceptions.

    Coroutines returned by ``func`` are awaited, so ``run_blocking`` can be
    passed as ``func`` to retry work done in the executor.

    Args:
        func: Function to call
        *args: Positional arguments for ``func``
        policy: Retry policy (default policy if omitted)
        exceptions: Exception types that trigger a retry
        give_up_on: Subclasses of ``exceptions`` that are raised at once
        operation: Operation name used in log messages
        **kwargs: Keyword arguments for ``func``

    Returns:
        The function's return value

    Raises:
        The last exception once retries are exhausted
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        try:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except exceptions as e:
            if give_up_on and isinstance(e, give_up_on):
                raise
            attempt += 1
            if attempt > policy.max_retries:
                raise

            delay = policy.get_delay(attempt - 1)
            logger.warning(
                f"Retrying '{operation or func.__name__}' after error: {e}. "
                f"Attempt {attempt}/{policy.max_retries} (delay: {delay:.3f}s)",
                component="storage",
                operation=operation,
            )
            await asyncio.sleep(delay)


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking callable in the default executor.

    Args:
        func: Callable to run
        *args: Positional arguments
        **kwargs: Keyword arguments

    Returns:
        The callable's result
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID.

    Args:
        prefix: Optional prefix for the ID

    Returns:
        Unique ID string
    """
    return f"{prefix}{uuid.uuid4()}"
