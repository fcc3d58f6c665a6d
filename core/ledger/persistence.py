"""
분개 저장 코디네이터

검증된 분개를 배치로 나누어 원장 저장소에 기록.
- 사전 균형 검증 (실패 시 아무것도 쓰지 않음)
- (회사, 유형, 월, 연도) 중복 검사로 멱등성 보장
- 배치별 지수 백오프 재시도, 최종 실패는 배치 단위로 보고
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

from core.constants import Defaults
from core.errors import DatabaseError
from core.ledger.balance import validate_balance
from core.ledger.entry_builder import JournalEntry
from core.utils.dedup import make_period_entry_key

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class PersistenceOptions:
    """저장 옵션

    Attributes:
        batch_size: 한 번의 저장소 호출에 담을 분개 수
        retry_attempts: 배치당 최대 시도 횟수
        validate_balance: 저장 전 균형 검증 여부
        check_duplicates: (회사, 유형, 월, 연도) 중복 검사 여부
        batch_delay_sec: 배치 사이 지연 (저장소 과부하 방지)
    """

    batch_size: int = Defaults.BATCH_SIZE
    retry_attempts: int = Defaults.RETRY_ATTEMPTS
    validate_balance: bool = True
    check_duplicates: bool = True
    batch_delay_sec: float = Defaults.BATCH_DELAY_SEC


@dataclass
class PersistenceResult:
    """저장 결과 (부분 실패 포함)"""

    entries_created: int = 0
    lines_created: int = 0
    skipped_duplicates: int = 0
    processing_time_ms: float = 0.0
    errors: list[str] = field(default_factory=list)
    created_entry_ids: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """모든 배치 성공 여부"""
        return not self.errors


class JournalPersistenceCoordinator:
    """분개 저장 코디네이터

    Args:
        store: 원장 저장소
        options: 기본 저장 옵션
        sleep: 대기 함수 (테스트에서 교체)

    사용 예시:
    ```python
    coordinator = JournalPersistenceCoordinator(store)
    result = await coordinator.persist(entries)
    if result.errors:
        logger.warning(result.errors)
    ```
    """

    def __init__(
        self,
        store: "ILedgerStore",
        options: PersistenceOptions | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.store = store
        self.options = options or PersistenceOptions()
        self._sleep = sleep

    async def persist(
        self,
        entries: Sequence[JournalEntry],
        options: PersistenceOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> PersistenceResult:
        """분개 저장

        Args:
            entries: 저장할 분개
            options: 이번 호출에만 적용할 옵션 (None이면 기본값)
            on_progress: 배치 완료마다 (처리한 분개 수, 전체 분개 수) 호출

        Returns:
            PersistenceResult (부분 실패는 errors에 기록)

        Raises:
            ValidationError: 사전 균형 검증 실패 (아무것도 저장하지 않음)
        """
        opts = options or self.options
        started = time.perf_counter()
        result = PersistenceResult()

        if opts.batch_size <= 0:
            raise ValueError(f"batch_size must be positive: {opts.batch_size}")

        # 1. 사전 검증 (fail-fast)
        if opts.validate_balance:
            for entry in entries:
                validate_balance(entry)

        # 2. 중복 검사
        pending = list(entries)
        if opts.check_duplicates:
            pending = await self._filter_duplicates(pending, result)

        # 3. 배치 저장
        total = len(pending)
        for start in range(0, total, opts.batch_size):
            batch = pending[start:start + opts.batch_size]
            end = start + len(batch) - 1

            error = await self._write_batch(batch, opts.retry_attempts)
            if error is None:
                result.entries_created += len(batch)
                result.lines_created += sum(len(e.lines) for e in batch)
                result.created_entry_ids.extend(e.entry_id for e in batch)
            else:
                message = f"Batch {start}-{end} failed: {error}"
                result.errors.append(message)
                logger.error(message, extra={"batch_start": start, "batch_end": end})

            if on_progress is not None:
                on_progress(start + len(batch), total)

            if start + opts.batch_size < total and opts.batch_delay_sec > 0:
                await self._sleep(opts.batch_delay_sec)

        result.processing_time_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"분개 저장 완료: {result.entries_created} entries, {result.lines_created} lines, "
            f"{result.skipped_duplicates} duplicates, {len(result.errors)} failed batches",
            extra={
                "entries_created": result.entries_created,
                "lines_created": result.lines_created,
                "processing_time_ms": round(result.processing_time_ms, 2),
            },
        )
        return result

    async def _filter_duplicates(
        self,
        entries: list[JournalEntry],
        result: PersistenceResult,
    ) -> list[JournalEntry]:
        """이미 게시된 (회사, 유형, 월, 연도) 분개 제외

        같은 호출 안에서 같은 키가 반복되면 첫 번째만 유지.
        중복 검사 조회가 실패한 키의 분개는 모두 쓰지 않고 분개마다 오류로 보고.
        """
        seen: set[str] = set()
        unchecked: set[str] = set()
        kept: list[JournalEntry] = []

        for entry in entries:
            key = make_period_entry_key(entry.company_id, entry.entry_type.value, entry.month, entry.year)

            if key in unchecked:
                message = f"Duplicate check {key} unavailable for entry {entry.entry_id}"
                result.errors.append(message)
                logger.error(message, extra={"entry_id": entry.entry_id})
                continue

            if key not in seen:
                try:
                    exists = await self.store.query_existing_entry(
                        entry.company_id, entry.entry_type, entry.month, entry.year
                    )
                except DatabaseError as e:
                    unchecked.add(key)
                    message = f"Duplicate check {key} failed for entry {entry.entry_id}: {e}"
                    result.errors.append(message)
                    logger.error(message, extra={"entry_id": entry.entry_id})
                    continue
                seen.add(key)
                if not exists:
                    kept.append(entry)
                    continue

            result.skipped_duplicates += 1
            logger.debug(f"중복 분개 건너뜀: {key}", extra={"entry_id": entry.entry_id})

        return kept

    async def _write_batch(
        self,
        batch: list[JournalEntry],
        retry_attempts: int,
    ) -> DatabaseError | None:
        """배치 저장 (재시도 포함)

        Returns:
            최종 실패 시 마지막 DatabaseError, 성공 시 None
        """
        last_error: DatabaseError | None = None

        for attempt in range(max(1, retry_attempts)):
            try:
                await self.store.insert_journal_batch(batch)
                return None
            except DatabaseError as e:
                last_error = e
                if attempt < retry_attempts - 1:
                    delay = 2 ** attempt
                    logger.warning(
                        f"배치 저장 실패, {delay}초 후 재시도 ({attempt + 1}/{retry_attempts}): {e}",
                    )
                    await self._sleep(delay)

        return last_error
