"""
Async Hygiene Tools
Supervised task management, timeouts and retry logic for the feed and the tool handlers.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

# Registry of supervised tasks that are still running
_supervised_tasks: Dict[str, asyncio.Task] = {}

T = TypeVar('T')


class AsyncTimeoutError(Exception):
    """Raised when an async operation times out."""
    pass


class AsyncRetryError(Exception):
    """Raised when an async operation fails after all retries."""
    pass


def create_supervised_task(
    coro: Awaitable[T],
    *,
    name: str,
) -> asyncio.Task[T]:
    """
    Create a supervised task that will be cancelled on shutdown.

    The task drops out of the registry as soon as it finishes, so a name can be
    reused once the previous task with that name is done.

    Args:
        coro: The coroutine to run
        name: Unique name for the task (used for tracking)

    Returns:
        The created task

    Raises:
        ValueError: If a live task with the same name already exists
    """
    existing = _supervised_tasks.get(name)
    if existing is not None and not existing.done():
        raise ValueError(f"Task '{name}' already exists")

    async def _supervised_wrapper():
        try:
            return await coro
        except asyncio.CancelledError:
            logger.info(f"[async_tools] Task '{name}' cancelled")
            raise
        except Exception as e:
            logger.error(f"[async_tools] Task '{name}' failed: {e}")
            raise

    task = asyncio.create_task(_supervised_wrapper(), name=name)
    _supervised_tasks[name] = task

    def _forget(done: asyncio.Task) -> None:
        if _supervised_tasks.get(name) is done:
            del _supervised_tasks[name]

    task.add_done_callback(_forget)
    return task


async def cancel_and_join(task: asyncio.Task) -> None:
    """Cancel a task and wait until it has actually finished."""
    if task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.debug(f"[async_tools] Task '{task.get_name()}' ended with {e!r} during cancel")


async def timeout(awaitable: Awaitable[T], seconds: float) -> T:
    """
    Add a timeout to an awaitable.

    Raises:
        AsyncTimeoutError: If the operation times out
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise AsyncTimeoutError(f"Operation timed out after {seconds}s")


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """
    Retry an async function with exponential backoff and jitter.

    Only exceptions listed in ``retry_on`` are retried; anything else propagates
    on the first attempt.

    Raises:
        AsyncRetryError: If all attempts fail, chained to the last failure
    """
    last_exception = None
    delay = base_delay

    for attempt in range(max_attempts):
        try:
            return await func()
        except retry_on as e:
            last_exception = e
            if attempt == max_attempts - 1:
                break

            actual_delay = min(delay, max_delay)
            if jitter:
                # Add ±25% jitter
                actual_delay *= random.uniform(0.75, 1.25)

            logger.warning(f"[async_tools] Attempt {attempt + 1}/{max_attempts} failed: {e}. Retrying in {actual_delay:.2f}s")
            await asyncio.sleep(actual_delay)
            delay *= backoff_factor

    raise AsyncRetryError(f"Function failed after {max_attempts} attempts") from last_exception


async def shutdown_supervised_tasks():
    """Cancel all supervised tasks and wait for them to complete."""
    if not _supervised_tasks:
        return

    tasks = list(_supervised_tasks.values())
    logger.info(f"[async_tools] Shutting down {len(tasks)} supervised tasks")

    for task in tasks:
        if not task.done():
            task.cancel()

    await asyncio.gather(*tasks, return_exceptions=True)

    _supervised_tasks.clear()
    logger.info("[async_tools] All supervised tasks shut down")


def get_supervised_tasks() -> Dict[str, asyncio.Task]:
    """Get the current supervised tasks registry."""
    return _supervised_tasks.copy()


class DeterministicClock:
    """A deterministic clock for testing that can be frozen and advanced."""

    def __init__(self, start_time: float = 0.0):
        self._time = start_time
        self._frozen = False

    def time(self) -> float:
        """Get current time."""
        if self._frozen:
            return self._time
        return time.time()

    def freeze(self):
        """Freeze the clock at current time."""
        self._frozen = True
        self._time = time.time()

    def advance(self, seconds: float):
        """Advance the clock by the given number of seconds."""
        if not self._frozen:
            raise RuntimeError("Clock must be frozen to advance")
        self._time += seconds

    def unfreeze(self):
        """Unfreeze the clock to use real time."""
        self._frozen = False


# Global deterministic clock for tests
_deterministic_clock = DeterministicClock()


def get_deterministic_clock() -> DeterministicClock:
    """Get the global deterministic clock."""
    return _deterministic_clock
