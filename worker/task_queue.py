"""
작업 큐

요청 처리 중 분리 실행하던 후속 작업(감가상각 최신화, 정합성 검사 등)을
명시적인 작업 단위로 등록하고 완료를 관찰할 수 있게 함.
- 작업마다 재시도 정책 (지수 백오프)
- TaskStateMachine으로 상태 추적
- 워커는 큐가 소유한 asyncio Task, 작업 예외는 핸들에 기록되고 워커 루프로 전파되지 않음
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
from uuid import uuid4

from core.constants import Defaults
from core.domain.state_machines import TaskState, TaskStateMachine
from core.errors import DatabaseError

logger = logging.getLogger(__name__)

TaskFunc = Callable[..., Awaitable[Any]]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """재시도 정책

    Attributes:
        max_attempts: 최대 시도 횟수 (첫 시도 포함)
        initial_delay: 첫 재시도 전 대기 (초)
        backoff_factor: 재시도마다 곱해지는 계수
        retry_on: 재시도 대상 예외 타입
    """

    max_attempts: int = Defaults.TASK_MAX_ATTEMPTS
    initial_delay: float = Defaults.TASK_INITIAL_DELAY_SEC
    backoff_factor: float = Defaults.TASK_BACKOFF_FACTOR
    retry_on: tuple[type[BaseException], ...] = (DatabaseError,)

    def delay_for(self, attempt: int) -> float:
        """attempt번째 시도가 실패한 뒤의 대기 시간

        Example:
            >>> RetryPolicy(initial_delay=1.0, backoff_factor=2.0).delay_for(3)
            4.0
        """
        return self.initial_delay * (self.backoff_factor ** max(0, attempt - 1))

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        return attempt < self.max_attempts and isinstance(error, self.retry_on)


class TaskHandle:
    """등록된 작업 핸들

    사용 예시:
    ```python
    handle = queue.enqueue("reconcile", runner.run, "farm-1", path)
    report = await handle.wait()
    ```
    """

    def __init__(
        self,
        name: str,
        func: TaskFunc,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        retry_policy: RetryPolicy,
    ):
        self.task_id = str(uuid4())
        self.name = name
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self.retry_policy = retry_policy
        self.attempts = 0
        self.result: Any = None
        self.error: BaseException | None = None
        self.machine = TaskStateMachine(TaskState.PENDING)
        self._done = asyncio.Event()

    @property
    def state(self) -> str:
        return self.machine.state

    @property
    def done(self) -> bool:
        return self.machine.is_complete

    @property
    def succeeded(self) -> bool:
        return self.machine.state == TaskState.SUCCEEDED.value

    async def wait(self, timeout: float | None = None) -> Any:
        """완료 대기

        Returns:
            작업 반환값

        Raises:
            작업이 실패한 경우 마지막 예외
            asyncio.TimeoutError: timeout 초과
        """
        await asyncio.wait_for(self._done.wait(), timeout)
        if self.error is not None:
            raise self.error
        return self.result

    def _finish(self) -> None:
        self._done.set()

    def __repr__(self) -> str:
        return f"TaskHandle({self.name}, {self.task_id[:8]}, {self.state}, attempts={self.attempts})"


class TaskQueue:
    """비동기 작업 큐

    Args:
        concurrency: 동시 실행 워커 수
        default_policy: 작업별 정책이 없을 때의 재시도 정책
        sleep: 대기 함수 (테스트에서 교체)

    사용 예시:
    ```python
    async with TaskQueue(concurrency=2) as queue:
        handle = queue.enqueue("catch-up", run_monthly_catch_up, recompute, "farm-1", start, end)
        await queue.join()
    ```
    """

    def __init__(
        self,
        concurrency: int = Defaults.WORKER_CONCURRENCY,
        default_policy: RetryPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        if concurrency <= 0:
            raise ValueError(f"concurrency must be positive: {concurrency}")
        self.concurrency = concurrency
        self.default_policy = default_policy or RetryPolicy()
        self._sleep = sleep
        self._queue: asyncio.Queue[TaskHandle | None] = asyncio.Queue()
        self._workers: list[asyncio.Task[None]] = []
        self._handles: list[TaskHandle] = []
        self._stopped = False

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._stopped

    @property
    def handles(self) -> list[TaskHandle]:
        """등록된 모든 작업 핸들"""
        return list(self._handles)

    def start(self) -> None:
        """워커 시작 (이미 시작되었으면 무시)"""
        if self._workers:
            return
        self._stopped = False
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"task-worker-{index}")
            for index in range(self.concurrency)
        ]
        logger.info(f"TaskQueue 시작: {self.concurrency} workers")

    def enqueue(
        self,
        name: str,
        func: TaskFunc,
        *args: Any,
        retry_policy: RetryPolicy | None = None,
        **kwargs: Any,
    ) -> TaskHandle:
        """작업 등록

        Raises:
            RuntimeError: 종료된 큐에 등록하는 경우
        """
        if self._stopped:
            raise RuntimeError("TaskQueue is stopped")

        handle = TaskHandle(name, func, args, kwargs, retry_policy or self.default_policy)
        self._handles.append(handle)
        self._queue.put_nowait(handle)
        logger.debug(f"작업 등록: {handle!r}")
        return handle

    async def join(self) -> None:
        """등록된 모든 작업 완료 대기"""
        await self._queue.join()

    async def stop(self) -> None:
        """워커 종료 (대기 중인 작업은 먼저 처리)"""
        if self._stopped:
            return
        self._stopped = True
        for _ in self._workers:
            self._queue.put_nowait(None)
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("TaskQueue 종료")

    async def __aenter__(self) -> "TaskQueue":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    async def _worker(self, index: int) -> None:
        while True:
            handle = await self._queue.get()
            try:
                if handle is None:
                    return
                await self._run(handle)
            finally:
                self._queue.task_done()

    async def _run(self, handle: TaskHandle) -> None:
        """작업 실행 (재시도 포함)"""
        try:
            await self._attempt_until_done(handle)
        except asyncio.CancelledError:
            handle.error = asyncio.CancelledError(f"Task {handle.name} cancelled")
            handle.machine.force_state(TaskState.FAILED)
            raise
        finally:
            handle._finish()

    async def _attempt_until_done(self, handle: TaskHandle) -> None:
        policy = handle.retry_policy

        while True:
            handle.machine.transition(TaskState.RUNNING)
            handle.attempts += 1

            try:
                handle.result = await handle.func(*handle.args, **handle.kwargs)
            except Exception as e:
                if policy.should_retry(e, handle.attempts):
                    delay = policy.delay_for(handle.attempts)
                    handle.machine.transition(TaskState.RETRYING)
                    logger.warning(
                        f"작업 실패, {delay}초 후 재시도 ({handle.attempts}/{policy.max_attempts}): "
                        f"{handle.name}: {e}",
                        extra={"task_id": handle.task_id},
                    )
                    await self._sleep(delay)
                    continue

                handle.error = e
                handle.machine.transition(TaskState.FAILED)
                logger.error(
                    f"작업 실패: {handle.name} ({handle.attempts} attempts): {e}",
                    extra={"task_id": handle.task_id, "error_type": type(e).__name__},
                )
                return

            handle.machine.transition(TaskState.SUCCEEDED)
            logger.info(
                f"작업 완료: {handle.name} ({handle.attempts} attempts)",
                extra={"task_id": handle.task_id},
            )
            return
