"""
Async Hygiene Tests
Supervised tasks, timeouts and retry behaviour.
"""

import asyncio
import pytest

from wealthy_mcp.util.async_tools import (
    AsyncRetryError, AsyncTimeoutError, cancel_and_join, create_supervised_task,
    get_supervised_tasks, retry_async, timeout
)


class TestSupervisedTasks:

    async def test_duplicate_live_name_rejected(self):
        task = create_supervised_task(asyncio.sleep(10), name="worker")

        with pytest.raises(ValueError):
            create_supervised_task(asyncio.sleep(10), name="worker")

        await cancel_and_join(task)

    async def test_name_reusable_after_completion(self):
        first = create_supervised_task(asyncio.sleep(0), name="worker")
        await first
        await asyncio.sleep(0)

        assert "worker" not in get_supervised_tasks()
        second = create_supervised_task(asyncio.sleep(0), name="worker")
        await second

    async def test_cancel_and_join(self):
        task = create_supervised_task(asyncio.sleep(10), name="sleeper")

        await cancel_and_join(task)

        assert task.cancelled()


class TestTimeoutAndRetry:

    async def test_timeout(self):
        with pytest.raises(AsyncTimeoutError):
            await timeout(asyncio.sleep(1), 0.01)

    async def test_retry_until_success(self):
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 2:
                raise ConnectionError("flaky")
            return "ok"

        result = await retry_async(flaky, max_attempts=3, base_delay=0, jitter=False)

        assert result == "ok"
        assert len(attempts) == 2

    async def test_retry_exhausted_chains_last_error(self):
        async def broken():
            raise ConnectionError("down")

        with pytest.raises(AsyncRetryError) as exc_info:
            await retry_async(broken, max_attempts=2, base_delay=0, jitter=False)

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    async def test_non_retryable_error_propagates(self):
        attempts = []

        async def bad():
            attempts.append(1)
            raise KeyError("nope")

        with pytest.raises(KeyError):
            await retry_async(bad, max_attempts=3, base_delay=0, retry_on=(ConnectionError,))

        assert len(attempts) == 1
