"""
감가상각 재계산 서비스 (로컬)

IRecomputeService 계약의 원장 기반 구현.
- process_monthly_depreciation: 회사 단위 월 감가상각 게시
- catch_up_depreciation_to_date: 자산 1건의 누락 월 감가상각 게시

두 호출 모두 (자산, 기간) 단위로 중복을 검사하므로 반복 호출해도 안전함.
이미 게시된 달에 새로 활성화된 자산(처분 취소 등)이 있으면 그 자산분만 추가 게시.
"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from adapters.models import JournalQuery, RecomputeResult
from core.depreciation.calculator import DepreciationCalculator
from core.domain.models import Asset, clamp_book_value
from core.errors import DatabaseError, ValidationError
from core.ledger.entry_builder import JournalEntry, JournalEntryBuilder
from core.ledger.persistence import JournalPersistenceCoordinator
from core.ledger.types import AccountCodes, EntryType
from core.types import AssetStatus
from core.utils.periods import Period, iter_periods

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


async def sum_depreciation_credits(store: "ILedgerStore", asset_id: str) -> Decimal:
    """자산의 감가상각누계액 (감가상각 분개의 누계액 대변 합계)"""
    lines = await store.query_journal_lines(JournalQuery(
        asset_id=asset_id,
        entry_type=EntryType.DEPRECIATION,
        account_code=AccountCodes.ACCUMULATED_DEPRECIATION,
    ))
    return sum((line.credit_amount for line in lines), Decimal("0"))


async def refresh_asset_snapshot(store: "ILedgerStore", asset: Asset) -> Asset:
    """원장 기준으로 자산 스냅샷(누계액, 장부가) 재계산 후 저장"""
    accumulated = await sum_depreciation_credits(store, asset.asset_id)
    current_value = clamp_book_value(asset.purchase_price, asset.salvage_value, accumulated)
    await store.update_asset_values(asset.asset_id, accumulated, current_value)
    return replace(asset, accumulated_depreciation=accumulated, current_value=current_value)


class LedgerRecomputeService:
    """원장 기반 감가상각 재계산 (IRecomputeService 구현)

    Args:
        store: 원장 저장소
        coordinator: 분개 저장 코디네이터
        builder: 분개 생성기
        calculator: 월 감가상각비 계산기

    사용 예시:
    ```python
    service = LedgerRecomputeService(store, coordinator, builder, calculator)
    result = await service.process_monthly_depreciation("farm-1", 3, 2024)
    ```
    """

    def __init__(
        self,
        store: "ILedgerStore",
        coordinator: JournalPersistenceCoordinator,
        builder: JournalEntryBuilder | None = None,
        calculator: DepreciationCalculator | None = None,
    ):
        self.store = store
        self.coordinator = coordinator
        self.calculator = calculator or DepreciationCalculator()
        self.builder = builder or JournalEntryBuilder(self.calculator)

    async def process_monthly_depreciation(
        self,
        company_id: str,
        month: int,
        year: int,
    ) -> RecomputeResult:
        """회사의 해당 월 감가상각

        대상: 활성 자산 중 착유 개시일이 기간 말일 이전이고
        해당 기간 감가상각 라인이 아직 없는 자산.
        """
        period = Period(year, month)

        try:
            assets = await self.store.list_assets(company_id, AssetStatus.ACTIVE)

            items: list[tuple[Asset, Decimal]] = []
            for asset in assets:
                if asset.freshen_date is None or asset.freshen_date > period.end:
                    continue
                posted, accumulated = await self._posted_periods(asset.asset_id)
                if period in posted:
                    continue
                amount = self._amount_due(asset, accumulated)
                if amount > 0:
                    items.append((asset, amount))

            if not items:
                logger.info(
                    f"월 감가상각 대상 없음: {company_id} {period.label}",
                    extra={"company_id": company_id, "period": period.label},
                )
                return RecomputeResult(success=True)

            entry = self.builder.build_period_depreciation(company_id, period, items)
            error = await self._persist([entry])
            if error:
                return RecomputeResult(success=False, error=error)

            for asset, _ in items:
                await refresh_asset_snapshot(self.store, asset)

        except (DatabaseError, ValidationError) as e:
            logger.error(
                f"월 감가상각 실패: {company_id} {period.label}: {e}",
                extra={"company_id": company_id, "period": period.label},
            )
            return RecomputeResult(success=False, error=str(e))

        logger.info(
            f"월 감가상각 게시: {company_id} {period.label} "
            f"{len(items)} cows, {entry.total_amount}",
            extra={"company_id": company_id, "entry_id": entry.entry_id},
        )
        return RecomputeResult(
            success=True,
            processed_amount=entry.total_amount,
            entries_created=1,
            assets_processed=len(items),
        )

    async def catch_up_depreciation_to_date(
        self,
        asset_id: str,
        through: date,
    ) -> RecomputeResult:
        """through 직전 월까지 누락된 감가상각을 자산별 분개로 게시

        through가 속한 달은 아직 마감 전이므로 포함하지 않음.
        """
        try:
            asset = await self.store.get_asset(asset_id)
            if asset is None:
                return RecomputeResult(success=False, error=f"Asset not found: {asset_id}")

            if not asset.is_active or asset.freshen_date is None:
                logger.debug(
                    f"Catch-up 대상 아님: Cow #{asset.tag}",
                    extra={"asset_id": asset_id, "status": asset.status},
                )
                return RecomputeResult(success=True)

            posted, accumulated = await self._posted_periods(asset_id)
            entries: list[JournalEntry] = []

            for period in iter_periods(Period.of(asset.freshen_date), Period.of(through).previous()):
                if period in posted:
                    continue
                amount = self._amount_due(asset, accumulated)
                if amount <= 0:
                    break
                entries.append(self.builder.build_depreciation(asset, amount, period))
                accumulated += amount

            if not entries:
                return RecomputeResult(success=True)

            error = await self._persist(entries)
            if error:
                return RecomputeResult(success=False, error=error)

            await refresh_asset_snapshot(self.store, asset)

        except (DatabaseError, ValidationError) as e:
            logger.error(
                f"Catch-up 실패: {asset_id} → {through}: {e}",
                extra={"asset_id": asset_id},
            )
            return RecomputeResult(success=False, error=str(e))

        processed = sum((e.total_amount for e in entries), Decimal("0"))
        logger.info(
            f"Catch-up 게시: Cow #{asset.tag} {len(entries)} months, {processed}",
            extra={"asset_id": asset_id, "through": through.isoformat()},
        )
        return RecomputeResult(
            success=True,
            processed_amount=processed,
            entries_created=len(entries),
            assets_processed=1,
        )

    async def _posted_periods(self, asset_id: str) -> tuple[set[Period], Decimal]:
        """자산의 감가상각 게시 기간과 누계액"""
        entries = await self.store.query_journal_entries(JournalQuery(
            asset_id=asset_id,
            entry_type=EntryType.DEPRECIATION,
        ))
        periods: set[Period] = set()
        accumulated = Decimal("0")
        for entry in entries:
            periods.add(entry.period)
            accumulated += sum(
                (
                    line.credit_amount for line in entry.lines
                    if line.asset_id == asset_id
                    and line.account_code == AccountCodes.ACCUMULATED_DEPRECIATION
                ),
                Decimal("0"),
            )
        return periods, accumulated

    def _amount_due(self, asset: Asset, accumulated: Decimal) -> Decimal:
        """당월 감가상각비 (잔여 상각 대상 금액 한도)"""
        remaining = asset.depreciable_base - accumulated
        if remaining <= 0:
            return Decimal("0")
        monthly = self.calculator.monthly_amount(asset.purchase_price, asset.salvage_value)
        return min(monthly, remaining)

    async def _persist(self, entries: list[JournalEntry]) -> str | None:
        """자산·기간 단위 중복 검사를 이미 했으므로 회사 단위 검사는 생략"""
        options = replace(self.coordinator.options, check_duplicates=False)
        result = await self.coordinator.persist(entries, options)
        if result.errors:
            return "; ".join(result.errors)
        return None
