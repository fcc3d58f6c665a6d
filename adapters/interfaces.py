"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence, runtime_checkable

from adapters.models import JournalQuery, RecomputeResult
from core.domain.models import Asset, Disposition, ReconciliationStagingRecord
from core.ledger.entry_builder import JournalEntry, JournalLine
from core.ledger.types import EntryType
from core.types import AssetStatus, ResolutionStatus


@runtime_checkable
class ILedgerStore(Protocol):
    """원장 저장소 인터페이스

    저장소 호출 실패는 DatabaseError로 알려야 함 (재시도 대상).
    """

    # -------------------------------------------------------------------------
    # 분개
    # -------------------------------------------------------------------------

    async def insert_journal_entry(self, entry: JournalEntry) -> str:
        """분개 헤더 저장

        Returns:
            entry_id
        """
        ...

    async def insert_journal_lines(self, lines: Sequence[JournalLine]) -> int:
        """분개 라인 저장 (각 라인은 entry_id 보유)

        Returns:
            저장된 라인 수
        """
        ...

    async def insert_journal_batch(self, entries: Sequence[JournalEntry]) -> int:
        """분개 묶음 저장 (헤더 + 라인, 한 번의 호출로 원자적 처리)

        Returns:
            저장된 라인 수
        """
        ...

    async def query_journal_lines(self, query: JournalQuery) -> list[JournalLine]:
        """조건에 맞는 분개 라인 조회"""
        ...

    async def query_journal_entries(self, query: JournalQuery) -> list[JournalEntry]:
        """조건에 맞는 분개 조회 (라인 포함, 분개일 순)

        asset_id 조건은 해당 자산을 참조하는 라인이 있는 분개.
        """
        ...

    async def query_existing_entry(
        self,
        company_id: str,
        entry_type: EntryType,
        month: int,
        year: int,
    ) -> bool:
        """(회사, 유형, 월, 연도) 분개 존재 여부 (중복 검사)"""
        ...

    # -------------------------------------------------------------------------
    # 자산
    # -------------------------------------------------------------------------

    async def insert_asset(self, asset: Asset) -> None:
        """자산 저장"""
        ...

    async def get_asset(self, asset_id: str) -> Asset | None:
        """자산 조회"""
        ...

    async def list_assets(
        self,
        company_id: str,
        status: AssetStatus | None = None,
    ) -> list[Asset]:
        """회사 자산 목록 (tag 순)"""
        ...

    async def update_asset_status(
        self,
        asset_id: str,
        status: AssetStatus,
        disposition_id: str | None,
    ) -> None:
        """자산 상태 변경 및 처분 기록 연결"""
        ...

    async def update_asset_values(
        self,
        asset_id: str,
        accumulated_depreciation: Decimal,
        current_value: Decimal,
    ) -> None:
        """감가상각 스냅샷 갱신"""
        ...

    # -------------------------------------------------------------------------
    # 처분
    # -------------------------------------------------------------------------

    async def upsert_disposition(self, record: Disposition) -> None:
        """처분 기록 저장 (자산당 하나)"""
        ...

    async def list_dispositions(self, asset_id: str) -> list[Disposition]:
        """자산의 처분 기록"""
        ...

    async def delete_disposition(self, disposition_id: str) -> None:
        """처분 기록 삭제"""
        ...

    # -------------------------------------------------------------------------
    # 정합성 스테이징
    # -------------------------------------------------------------------------

    async def clear_pending_staging(self, company_id: str) -> int:
        """회사의 PENDING 스테이징 레코드 삭제

        Returns:
            삭제된 레코드 수
        """
        ...

    async def insert_staging_records(
        self,
        records: Sequence[ReconciliationStagingRecord],
    ) -> int:
        """스테이징 레코드 저장"""
        ...

    async def list_staging_records(
        self,
        company_id: str,
        status: ResolutionStatus | None = None,
    ) -> list[ReconciliationStagingRecord]:
        """스테이징 레코드 조회 (record_id 순)"""
        ...


@runtime_checkable
class IRecomputeService(Protocol):
    """감가상각 재계산 계약

    두 호출 모두 멱등적이어야 함 (같은 기간을 두 번 호출해도 안전).
    """

    async def catch_up_depreciation_to_date(
        self,
        asset_id: str,
        through: date,
    ) -> RecomputeResult:
        """through 날짜까지 자산의 감가상각을 최신화"""
        ...

    async def process_monthly_depreciation(
        self,
        company_id: str,
        month: int,
        year: int,
    ) -> RecomputeResult:
        """회사의 해당 월 감가상각 처리"""
        ...
