"""
worker/task_queue.py 테스트

재시도 정책, 상태 전이, 실패 격리
"""

import asyncio

import pytest

from core.errors import DatabaseError, ValidationError
from worker.task_queue import RetryPolicy, TaskQueue


class Flaky:
    """처음 failures번은 DatabaseError, 이후 value 반환"""

    def __init__(self, failures: int, value: str = "ok", error: Exception | None = None):
        self.failures = failures
        self.value = value
        self.error = error
        self.calls = 0

    async def __call__(self, *args, **kwargs) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error or DatabaseError(f"attempt {self.calls}", operation="flaky")
        return self.value


class TestRetryPolicy:
    """RetryPolicy 테스트"""

    def test_delay_for(self) -> None:
        policy = RetryPolicy(initial_delay=1.0, backoff_factor=2.0)

        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_should_retry(self) -> None:
        policy = RetryPolicy(max_attempts=3)

        assert policy.should_retry(DatabaseError("x"), 1)
        assert policy.should_retry(DatabaseError("x"), 2)
        assert not policy.should_retry(DatabaseError("x"), 3)
        assert not policy.should_retry(ValidationError("x"), 1)


class TestTaskQueue:
    """TaskQueue 테스트"""

    def test_invalid_concurrency(self) -> None:
        with pytest.raises(ValueError):
            TaskQueue(concurrency=0)

    @pytest.mark.asyncio
    async def test_success(self, fake_sleep) -> None:
        func = Flaky(failures=0, value="done")

        async with TaskQueue(concurrency=1, sleep=fake_sleep) as queue:
            handle = queue.enqueue("job", func, "farm-1", flag=True)
            result = await handle.wait(timeout=5)

        assert result == "done"
        assert handle.succeeded
        assert handle.attempts == 1
        assert handle.machine.history == [("PENDING", "RUNNING"), ("RUNNING", "SUCCEEDED")]

    @pytest.mark.asyncio
    async def test_passes_arguments(self, fake_sleep) -> None:
        received = []

        async def job(a, b, *, c):
            received.append((a, b, c))

        async with TaskQueue(concurrency=1, sleep=fake_sleep) as queue:
            await queue.enqueue("job", job, 1, 2, c=3).wait(timeout=5)

        assert received == [(1, 2, 3)]

    @pytest.mark.asyncio
    async def test_retries_with_backoff(self, fake_sleep) -> None:
        func = Flaky(failures=2)
        policy = RetryPolicy(max_attempts=3, initial_delay=0.5, backoff_factor=3.0)

        async with TaskQueue(concurrency=1, default_policy=policy, sleep=fake_sleep) as queue:
            handle = queue.enqueue("job", func)
            await handle.wait(timeout=5)

        assert handle.succeeded
        assert handle.attempts == 3
        assert fake_sleep.delays == [0.5, 1.5]

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, fake_sleep) -> None:
        func = Flaky(failures=5)

        async with TaskQueue(concurrency=1, sleep=fake_sleep) as queue:
            handle = queue.enqueue("job", func, retry_policy=RetryPolicy(max_attempts=2))
            with pytest.raises(DatabaseError):
                await handle.wait(timeout=5)

        assert handle.state == "FAILED"
        assert handle.attempts == 2
        assert func.calls == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error(self, fake_sleep) -> None:
        func = Flaky(failures=1, error=ValidationError("bad input"))

        async with TaskQueue(concurrency=1, sleep=fake_sleep) as queue:
            handle = queue.enqueue("job", func)
            with pytest.raises(ValidationError):
                await handle.wait(timeout=5)

        assert handle.attempts == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_workers(self, fake_sleep) -> None:
        """한 작업의 실패가 다른 작업에 영향 없음"""
        async with TaskQueue(concurrency=1, sleep=fake_sleep) as queue:
            failing = queue.enqueue("bad", Flaky(failures=1, error=ValidationError("x")))
            passing = queue.enqueue("good", Flaky(failures=0, value="fine"))
            await queue.join()

        assert failing.state == "FAILED"
        assert passing.result == "fine"
        assert [h.name for h in queue.handles] == ["bad", "good"]

    @pytest.mark.asyncio
    async def test_concurrency(self, fake_sleep) -> None:
        active = 0
        peak = 0

        async def job() -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        async with TaskQueue(concurrency=2, sleep=fake_sleep) as queue:
            for i in range(4):
                queue.enqueue(f"job-{i}", job)
            await queue.join()

        assert peak == 2

    @pytest.mark.asyncio
    async def test_enqueue_after_stop(self, fake_sleep) -> None:
        queue = TaskQueue(concurrency=1, sleep=fake_sleep)
        queue.start()
        assert queue.running
        await queue.stop()

        assert not queue.running
        with pytest.raises(RuntimeError):
            queue.enqueue("late", Flaky(failures=0))

    @pytest.mark.asyncio
    async def test_pending_tasks_drained_on_stop(self, fake_sleep) -> None:
        queue = TaskQueue(concurrency=1, sleep=fake_sleep)
        handle = queue.enqueue("queued", Flaky(failures=0, value="late"))

        queue.start()
        await queue.stop()

        assert handle.result == "late"
        assert handle.done
