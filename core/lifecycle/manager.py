"""
자산 생애주기 관리자

active --dispose--> disposed --reinstate--> active

처분/복원은 여러 단계의 저장소 쓰기로 이루어지며 단일 트랜잭션이 아님.
중간 단계가 실패하면 이전 단계의 쓰기는 남아 있으므로
같은 호출을 다시 실행해서 일관된 상태로 수렴시킴 (중복 검사, 미취소 분개 재탐색).
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Sequence
from uuid import uuid4

from adapters.models import JournalQuery
from core.constants import Defaults, Tolerances
from core.domain.models import Asset, Disposition
from core.domain.state_machines import AssetStateMachine, StateMachineError
from core.errors import DatabaseError, ValidationError
from core.lifecycle.requests import DisposeRequest
from core.ledger.entry_builder import JournalEntry, JournalEntryBuilder, JournalLine
from core.ledger.persistence import (
    JournalPersistenceCoordinator,
    PersistenceOptions,
    PersistenceResult,
)
from core.ledger.recompute import refresh_asset_snapshot, sum_depreciation_credits
from core.ledger.types import DISPOSITION_ACCOUNTS, AccountCodes, EntryType
from core.types import AcquisitionType, AssetStatus, DispositionType
from core.utils.periods import Period, iter_periods, previous_completed_period

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore, IRecomputeService

logger = logging.getLogger(__name__)

# 레거시 취소 분개 매칭 시 비교할 원 라인 설명 길이
REVERSAL_MATCH_PREFIX_LEN = 20

DEFAULT_REVERSAL_REASON = "Cow reinstated"


@dataclass(frozen=True)
class DispositionResult:
    """처분 결과"""

    asset_id: str
    disposition_id: str
    journal_entry_id: str
    final_book_value: Decimal
    gain_loss: Decimal
    catch_up_amount: Decimal


@dataclass(frozen=True)
class ReinstatementResult:
    """복원 결과"""

    asset_id: str
    reversal_entry_ids: list[str]
    dispositions_deleted: int
    accumulated_depreciation: Decimal
    current_value: Decimal
    months_processed: int
    months_failed: list[str] = field(default_factory=list)


@dataclass
class BatchDispositionResult:
    """일괄 처분 결과"""

    succeeded: list[DispositionResult] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # asset_id -> 오류


def _lines_mirror(original: Sequence[JournalLine], candidate: Sequence[JournalLine]) -> bool:
    """candidate 라인이 original 라인을 1:1로 차대 반대 복사했는지

    (계정 코드, 반대쪽 금액, 원 설명 앞부분 포함) 기준.
    """
    if len(original) != len(candidate):
        return False

    unused = list(candidate)
    for line in original:
        prefix = line.description[:REVERSAL_MATCH_PREFIX_LEN]
        match = next(
            (
                c for c in unused
                if c.account_code == line.account_code
                and c.debit_amount == line.credit_amount
                and c.credit_amount == line.debit_amount
                and prefix in c.description
            ),
            None,
        )
        if match is None:
            return False
        unused.remove(match)
    return True


def find_unreversed(
    originals: Sequence[JournalEntry],
    reversals: Sequence[JournalEntry],
) -> list[JournalEntry]:
    """아직 취소되지 않은 원 분개

    reverses_entry_id로 직접 연결된 취소 분개를 우선 사용.
    연결 정보가 없는 레거시 취소 분개는 라인 휴리스틱으로 1:1 매칭.
    """
    reversed_ids = {r.reverses_entry_id for r in reversals if r.reverses_entry_id}
    legacy = [r for r in reversals if not r.reverses_entry_id]

    remaining: list[JournalEntry] = []
    for original in originals:
        if original.entry_id in reversed_ids:
            continue

        match = next((r for r in legacy if _lines_mirror(original.lines, r.lines)), None)
        if match is not None:
            legacy.remove(match)
            logger.warning(
                f"레거시 취소 분개 휴리스틱 매칭: {original.entry_id} ← {match.entry_id}",
                extra={"entry_id": original.entry_id, "reversal_id": match.entry_id},
            )
            continue

        remaining.append(original)
    return remaining


def _entry_matches_disposition(
    entry: JournalEntry,
    disposition_type: DispositionType,
    disposition_date: date,
    sale_amount: Decimal,
) -> bool:
    """게시된 처분 분개가 같은 처분 요청으로 만들어졌는지 (처분일, 매각대금, 손실 계정)"""
    if entry.entry_date != disposition_date:
        return False

    cash = sum(
        (line.debit_amount for line in entry.lines if line.account_code == AccountCodes.CASH),
        Decimal("0"),
    )
    if abs(cash - sale_amount) > Tolerances.BALANCE:
        return False

    _, loss_account = DISPOSITION_ACCOUNTS[disposition_type]
    other_losses = {loss for _, loss in DISPOSITION_ACCOUNTS.values()} - {loss_account}
    return not any(line.account_code in other_losses for line in entry.lines)


class AssetLifecycleManager:
    """자산 생애주기 관리자

    Args:
        store: 원장 저장소
        recompute: 감가상각 재계산 계약
        coordinator: 분개 저장 코디네이터
        builder: 분개 생성기
        clock: 오늘 날짜 함수 (테스트에서 고정)

    사용 예시:
    ```python
    manager = AssetLifecycleManager(store, recompute, coordinator)
    await manager.dispose("cow-1", DispositionType.SALE, date(2024, 6, 15), Decimal("1800"))
    await manager.reinstate("cow-1")
    ```
    """

    def __init__(
        self,
        store: "ILedgerStore",
        recompute: "IRecomputeService",
        coordinator: JournalPersistenceCoordinator,
        builder: JournalEntryBuilder | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.recompute = recompute
        self.coordinator = coordinator
        self.builder = builder or JournalEntryBuilder()
        self._clock = clock

    @property
    def _single_entry_options(self) -> PersistenceOptions:
        # 자산 단위 분개는 회사·기간 단위 중복 검사 대상이 아님
        return replace(self.coordinator.options, check_duplicates=False)

    async def _require_asset(self, asset_id: str) -> Asset:
        asset = await self.store.get_asset(asset_id)
        if asset is None:
            raise ValidationError(f"Asset not found: {asset_id}", field="asset_id")
        return asset

    async def _post(self, entry: JournalEntry, operation: str) -> None:
        result = await self.coordinator.persist([entry], self._single_entry_options)
        if result.errors or result.entries_created != 1:
            raise DatabaseError(
                f"{operation} entry {entry.entry_id} was not posted: {'; '.join(result.errors)}",
                operation=operation,
            )

    # -------------------------------------------------------------------------
    # 취득
    # -------------------------------------------------------------------------

    async def acquire(
        self,
        asset: Asset,
        acquisition_type: AcquisitionType | None = None,
        entry_date: date | None = None,
    ) -> JournalEntry:
        """자산 등록 + 취득 분개 게시

        acquisition_type을 지정하면 자산의 취득 유형을 덮어씀.

        Raises:
            ValidationError: 취득가/잔존가치가 잘못된 경우
            DatabaseError: 저장 실패
        """
        if asset.salvage_value < 0 or asset.salvage_value > asset.purchase_price:
            raise ValidationError(
                f"salvage_value must be within 0..purchase_price: {asset.salvage_value}",
                field="salvage_value",
            )
        if acquisition_type is not None:
            asset = replace(asset, acquisition_type=AcquisitionType(acquisition_type))
        when = entry_date or asset.freshen_date or self._clock()
        entry = self.builder.build_acquisition(asset, when)

        await self.store.insert_asset(asset)
        await self._post(entry, "acquisition")

        logger.info(
            f"취득 게시: Cow #{asset.tag} {asset.purchase_price}",
            extra={"asset_id": asset.asset_id, "entry_id": entry.entry_id},
        )
        return entry

    async def backfill_acquisitions(self, company_id: str) -> PersistenceResult:
        """취득 분개가 없는 자산의 취득 분개 일괄 게시"""
        existing = await self.store.query_journal_entries(JournalQuery(
            company_id=company_id,
            entry_type=EntryType.ACQUISITION,
        ))
        acquired = set().union(*(e.asset_ids for e in existing)) if existing else set()

        entries: list[JournalEntry] = []
        for asset in await self.store.list_assets(company_id, AssetStatus.ACTIVE):
            if asset.asset_id in acquired:
                continue
            when = asset.freshen_date or asset.birth_date or self._clock()
            entries.append(self.builder.build_acquisition(asset, when))

        if not entries:
            return PersistenceResult()

        logger.info(
            f"누락 취득 분개 {len(entries)}건 게시 ({company_id})",
            extra={"company_id": company_id},
        )
        return await self.coordinator.persist(entries, self._single_entry_options)

    # -------------------------------------------------------------------------
    # 처분
    # -------------------------------------------------------------------------

    async def dispose(
        self,
        asset_id: str,
        disposition_type: DispositionType,
        disposition_date: date,
        sale_amount: Decimal = Decimal("0"),
        notes: str | None = None,
    ) -> DispositionResult:
        """자산 처분

        1. 처분일까지 감가상각 최신화 (재계산 계약)
        2. 원장 기준 누계액 재조회
        3. 처분 분개 생성 + 검증
        4. 처분 분개, 처분 기록 저장
        5. 자산 상태 disposed, 처분 기록 연결

        이전 호출이 분개 게시 후 실패했다면 미취소 처분 분개를 재사용해 4단계부터 이어감.

        Raises:
            StateMachineError: 이미 처분된 자산, 또는 게시된 처분 분개가 요청과 다름
            ValidationError: 입력값 오류
            DatabaseError: 재계산 또는 저장 실패 (자산은 active 유지)
        """
        asset = await self._require_asset(asset_id)
        machine = AssetStateMachine(asset.status)
        if not machine.can_transition(AssetStatus.DISPOSED):
            raise StateMachineError(f"Cow #{asset.tag} is already disposed")

        disposition_type = DispositionType(disposition_type)

        posted = await self.unreversed_dispositions(asset_id)
        if posted:
            return await self._resume_disposition(
                asset, machine, posted[-1], disposition_type, disposition_date, sale_amount, notes
            )

        # 1. 감가상각 최신화
        catch_up = await self.recompute.catch_up_depreciation_to_date(asset_id, disposition_date)
        if not catch_up.success:
            raise DatabaseError(
                f"Depreciation catch-up failed for Cow #{asset.tag}: {catch_up.error}",
                operation="catch_up_depreciation_to_date",
            )

        # 2. 누계액 재조회
        asset = await self._require_asset(asset_id)
        accumulated = await sum_depreciation_credits(self.store, asset_id)
        self._warn_on_drift(asset, accumulated, disposition_date)

        # 3. 처분 분개
        data = self.builder.disposition_data_for(
            asset,
            disposition_type,
            disposition_date,
            sale_amount=sale_amount,
            accumulated_depreciation=accumulated,
        )
        entry = self.builder.build_disposition(data)

        # 4. 저장 (분개 먼저, 실패 시 자산은 active 유지)
        await self._post(entry, "disposition")
        record = Disposition(
            disposition_id=str(uuid4()),
            asset_id=asset_id,
            company_id=asset.company_id,
            disposition_date=disposition_date,
            disposition_type=disposition_type,
            sale_amount=data.sale_amount,
            final_book_value=data.book_value,
            gain_loss=data.gain_loss,
            journal_entry_id=entry.entry_id,
            notes=notes,
        )
        return await self._complete_disposition(asset, machine, record, catch_up.processed_amount)

    async def _resume_disposition(
        self,
        asset: Asset,
        machine: AssetStateMachine,
        entry: JournalEntry,
        disposition_type: DispositionType,
        disposition_date: date,
        sale_amount: Decimal,
        notes: str | None,
    ) -> DispositionResult:
        """이미 게시된 처분 분개로 4단계부터 재개

        Raises:
            StateMachineError: 게시된 분개가 요청한 처분과 다름 (복원 후 다시 처분)
        """
        if not _entry_matches_disposition(entry, disposition_type, disposition_date, sale_amount):
            raise StateMachineError(
                f"Cow #{asset.tag} already has posted disposition entry {entry.entry_id} "
                f"that differs from this request; reinstate it first"
            )

        existing = [
            d for d in await self.store.list_dispositions(asset.asset_id)
            if d.journal_entry_id == entry.entry_id
        ]
        if existing:
            record = existing[0]
        else:
            accumulated = sum(
                (
                    line.debit_amount for line in entry.lines
                    if line.account_code == AccountCodes.ACCUMULATED_DEPRECIATION
                ),
                Decimal("0"),
            )
            book_value = asset.purchase_price - accumulated
            record = Disposition(
                disposition_id=str(uuid4()),
                asset_id=asset.asset_id,
                company_id=asset.company_id,
                disposition_date=disposition_date,
                disposition_type=disposition_type,
                sale_amount=sale_amount,
                final_book_value=book_value,
                gain_loss=sale_amount - book_value,
                journal_entry_id=entry.entry_id,
                notes=notes,
            )

        logger.warning(
            f"게시된 처분 분개로 처분 재개: Cow #{asset.tag} entry={entry.entry_id}",
            extra={"asset_id": asset.asset_id, "entry_id": entry.entry_id},
        )
        return await self._complete_disposition(asset, machine, record, Decimal("0"))

    async def _complete_disposition(
        self,
        asset: Asset,
        machine: AssetStateMachine,
        record: Disposition,
        catch_up_amount: Decimal,
    ) -> DispositionResult:
        """처분 기록 저장 + 상태 전이"""
        await self.store.upsert_disposition(record)

        # 5. 상태 전이
        machine.transition(AssetStatus.DISPOSED)
        await self.store.update_asset_status(asset.asset_id, AssetStatus.DISPOSED, record.disposition_id)

        logger.info(
            f"처분 완료: Cow #{asset.tag} {record.disposition_type.value} "
            f"book={record.final_book_value} gain_loss={record.gain_loss}",
            extra={
                "asset_id": asset.asset_id,
                "disposition_id": record.disposition_id,
                "entry_id": record.journal_entry_id,
            },
        )
        return DispositionResult(
            asset_id=asset.asset_id,
            disposition_id=record.disposition_id,
            journal_entry_id=record.journal_entry_id,
            final_book_value=record.final_book_value,
            gain_loss=record.gain_loss,
            catch_up_amount=catch_up_amount,
        )

    async def dispose_batch(
        self,
        requests: Sequence[DisposeRequest],
        delay_sec: float = Defaults.DISPOSITION_BATCH_DELAY_SEC,
    ) -> BatchDispositionResult:
        """순차 일괄 처분 (건별 실패는 수집 후 계속)"""
        result = BatchDispositionResult()

        for index, request in enumerate(requests):
            try:
                outcome = await self.dispose(
                    request.asset_id,
                    request.disposition_type,
                    request.disposition_date,
                    sale_amount=request.sale_amount,
                    notes=request.notes,
                )
                result.succeeded.append(outcome)
            except (ValidationError, DatabaseError, StateMachineError) as e:
                result.failed[request.asset_id] = str(e)
                logger.warning(
                    f"일괄 처분 실패: {request.asset_id}: {e}",
                    extra={"asset_id": request.asset_id},
                )

            if delay_sec > 0 and index < len(requests) - 1:
                await asyncio.sleep(delay_sec)

        logger.info(
            f"일괄 처분 완료: {len(result.succeeded)} succeeded, {len(result.failed)} failed",
        )
        return result

    def _warn_on_drift(self, asset: Asset, accumulated: Decimal, as_of: date) -> None:
        """원장 누계액과 계산기 기대값이 다르면 경고"""
        if asset.freshen_date is None:
            return
        try:
            expected = self.builder.calculator.calculate(
                asset.purchase_price, asset.salvage_value, asset.freshen_date, as_of
            ).accumulated_depreciation
        except ValidationError:
            return
        # 월 반올림 누적 차이는 개월 수만큼 생길 수 있음
        tolerance = Tolerances.BALANCE * max(1, self.builder.calculator.useful_life_months)
        if abs(expected - accumulated) > tolerance:
            logger.warning(
                f"누계액 불일치: Cow #{asset.tag} ledger={accumulated} expected={expected}",
                extra={"asset_id": asset.asset_id},
            )

    # -------------------------------------------------------------------------
    # 복원
    # -------------------------------------------------------------------------

    async def unreversed_dispositions(self, asset_id: str) -> list[JournalEntry]:
        """자산의 미취소 처분 분개"""
        originals = await self.store.query_journal_entries(JournalQuery(
            asset_id=asset_id,
            entry_type=EntryType.DISPOSITION,
        ))
        if not originals:
            return []
        reversals = await self.store.query_journal_entries(JournalQuery(
            asset_id=asset_id,
            entry_type=EntryType.DISPOSITION_REVERSAL,
        ))
        return find_unreversed(originals, reversals)

    async def reinstate(
        self,
        asset_id: str,
        reason: str = DEFAULT_REVERSAL_REASON,
    ) -> ReinstatementResult:
        """처분 취소 (자산 복원)

        1-2. 미취소 처분 분개마다 취소 분개 게시
        3. 처분 기록 삭제
        4. 누계액을 감가상각 분개 합계로 재계산
        5. 자산 상태 active
        6. 처분 월부터 직전 마감 월까지 월 감가상각 재실행 (월별 실패는 경고만)

        Raises:
            StateMachineError: 처분되지 않았고 미취소 처분 분개도 없음
            DatabaseError: 취소 분개 저장 실패
        """
        asset = await self._require_asset(asset_id)
        machine = AssetStateMachine(asset.status)
        originals = await self.unreversed_dispositions(asset_id)

        if not machine.is_disposed and not originals:
            raise StateMachineError(f"Cow #{asset.tag} is not disposed")

        dispositions = await self.store.list_dispositions(asset_id)
        replay_from = self._replay_start(dispositions, originals)
        today = self._clock()

        # 1-2. 취소 분개
        reversal_ids: list[str] = []
        for original in originals:
            reversal = self.builder.build_reversal(original, reason, today)
            await self._post(reversal, "disposition_reversal")
            reversal_ids.append(reversal.entry_id)

        # 3. 처분 기록 삭제
        for disposition in dispositions:
            await self.store.delete_disposition(disposition.disposition_id)

        # 4. 누계액 재계산
        asset = await refresh_asset_snapshot(self.store, asset)

        # 5. 상태 전이
        if machine.is_disposed:
            machine.transition(AssetStatus.ACTIVE)
        await self.store.update_asset_status(asset_id, AssetStatus.ACTIVE, None)

        # 6. 월 감가상각 재실행
        processed, failed = await self._replay_months(asset.company_id, replay_from, today)

        final = await self._require_asset(asset_id)
        logger.info(
            f"복원 완료: Cow #{asset.tag} reversals={len(reversal_ids)} "
            f"replayed={processed} failed={len(failed)}",
            extra={"asset_id": asset_id, "reversal_entry_ids": reversal_ids},
        )
        return ReinstatementResult(
            asset_id=asset_id,
            reversal_entry_ids=reversal_ids,
            dispositions_deleted=len(dispositions),
            accumulated_depreciation=final.accumulated_depreciation,
            current_value=final.current_value,
            months_processed=processed,
            months_failed=failed,
        )

    @staticmethod
    def _replay_start(
        dispositions: Sequence[Disposition],
        originals: Sequence[JournalEntry],
    ) -> date | None:
        dates = [d.disposition_date for d in dispositions] or [e.entry_date for e in originals]
        return min(dates) if dates else None

    async def _replay_months(
        self,
        company_id: str,
        replay_from: date | None,
        today: date,
    ) -> tuple[int, list[str]]:
        """처분 월부터 직전 마감 월까지 월 감가상각 재실행"""
        if replay_from is None:
            return 0, []

        processed = 0
        failed: list[str] = []
        for period in iter_periods(Period.of(replay_from), previous_completed_period(today)):
            try:
                result = await self.recompute.process_monthly_depreciation(
                    company_id, period.month, period.year
                )
            except DatabaseError as e:
                result = None
                error = str(e)
            else:
                error = result.error

            if result is not None and result.success:
                processed += 1
                continue

            failed.append(period.label)
            logger.warning(
                f"월 감가상각 재실행 실패: {company_id} {period.label}: {error}",
                extra={"company_id": company_id, "period": period.label},
            )

        return processed, failed
