"""
정합성 비교 (마스터 로스터 vs 내부 활성 자산)

diff_roster는 순수 함수. 같은 입력이면 같은 순서의 같은 결과를 반환함.
ReconciliationRunner는 로스터 읽기 → 비교 → 대기 스테이징 교체를 수행.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from core.domain.models import Asset, ReconciliationStagingRecord, RosterEntry
from core.reconciliation.roster import normalize_date, read_roster
from core.types import AssetStatus, DiscrepancyType
from core.utils.dedup import make_staging_record_id

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


def make_key(tag: str, birth_date: date | str | None) -> str:
    """비교 키: 태그(공백 제거, 대문자) + '_' + 정규화 날짜

    Example:
        >>> make_key(" a1 ", "1/1/20")
        'A1_2020-01-01'
    """
    if isinstance(birth_date, date):
        normalized = birth_date.isoformat()
    elif birth_date:
        normalized = normalize_date(birth_date) or birth_date.strip()
    else:
        normalized = ""
    return f"{tag.strip().upper()}_{normalized}"


def _asset_key(asset: Asset) -> str:
    return make_key(asset.tag, asset.birth_date)


@dataclass(frozen=True)
class ReconciliationDiff:
    """비교 결과 (각 목록은 키 순 정렬)"""

    missing_from_database: list[RosterEntry] = field(default_factory=list)
    needs_disposal: list[Asset] = field(default_factory=list)
    missing_freshen_date: list[Asset] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            DiscrepancyType.MISSING_FROM_DATABASE.value: len(self.missing_from_database),
            DiscrepancyType.NEEDS_DISPOSAL.value: len(self.needs_disposal),
            DiscrepancyType.MISSING_FRESHEN_DATE.value: len(self.missing_freshen_date),
        }

    @property
    def is_clean(self) -> bool:
        return not any(self.counts.values())

    def to_staging_records(
        self,
        company_id: str,
        source_file_name: str,
    ) -> list[ReconciliationStagingRecord]:
        """스테이징 레코드 변환 (ID는 입력만으로 결정됨)"""
        records: list[ReconciliationStagingRecord] = []

        for entry in self.missing_from_database:
            records.append(_record(
                company_id, DiscrepancyType.MISSING_FROM_DATABASE,
                entry.tag, entry.birth_date, source_file_name,
            ))
        for asset in self.needs_disposal:
            records.append(_record(
                company_id, DiscrepancyType.NEEDS_DISPOSAL,
                asset.tag, _iso(asset.birth_date), source_file_name, asset.asset_id,
            ))
        for asset in self.missing_freshen_date:
            records.append(_record(
                company_id, DiscrepancyType.MISSING_FRESHEN_DATE,
                asset.tag, _iso(asset.birth_date), source_file_name, asset.asset_id,
            ))

        return records


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _record(
    company_id: str,
    discrepancy_type: DiscrepancyType,
    tag: str,
    birth_date: str | None,
    source_file_name: str,
    asset_id: str | None = None,
) -> ReconciliationStagingRecord:
    return ReconciliationStagingRecord(
        record_id=make_staging_record_id(company_id, discrepancy_type.value, tag, birth_date),
        company_id=company_id,
        discrepancy_type=discrepancy_type,
        tag=tag,
        birth_date=birth_date,
        source_file_name=source_file_name,
        asset_id=asset_id,
    )


def diff_roster(
    roster: Iterable[RosterEntry],
    active_assets: Iterable[Asset],
) -> ReconciliationDiff:
    """마스터 로스터와 내부 활성 자산 비교

    - missing_freshen_date: 착유 개시일 없는 활성 자산
    - needs_disposal: 로스터에 없는 활성 자산 (착유 개시일 누락 자산 제외)
    - missing_from_database: 활성 자산에 없는 로스터 행
    """
    master: dict[str, RosterEntry] = {}
    for entry in roster:
        master.setdefault(make_key(entry.tag, entry.birth_date), entry)

    assets = sorted(
        (a for a in active_assets if a.status == AssetStatus.ACTIVE),
        key=lambda a: (_asset_key(a), a.asset_id),
    )
    internal_keys = {_asset_key(a) for a in assets}

    missing_freshen = [a for a in assets if a.freshen_date is None]
    needs_disposal = [
        a for a in assets
        if a.freshen_date is not None and _asset_key(a) not in master
    ]
    missing_from_db = [master[key] for key in sorted(master) if key not in internal_keys]

    return ReconciliationDiff(
        missing_from_database=missing_from_db,
        needs_disposal=needs_disposal,
        missing_freshen_date=missing_freshen,
    )


@dataclass(frozen=True)
class ReconciliationReport:
    """정합성 실행 결과"""

    company_id: str
    source_file_name: str
    counts: dict[str, int]
    records: list[ReconciliationStagingRecord]
    cleared: int = 0


class ReconciliationRunner:
    """정합성 실행기

    로스터는 현재 시점의 전체 진실로 취급하므로
    기존 대기(pending) 스테이징은 모두 지우고 새 결과로 교체함.

    사용 예시:
    ```python
    runner = ReconciliationRunner(store)
    report = await runner.run("farm-1", "data/roster.csv")
    ```
    """

    def __init__(self, store: "ILedgerStore"):
        self.store = store

    async def run(self, company_id: str, roster_path: str | Path) -> ReconciliationReport:
        """로스터 파일로 정합성 실행

        Raises:
            ReconciliationError: 로스터 파일 오류 (스테이징 쓰기 전)
            DatabaseError: 저장소 오류
        """
        path = Path(roster_path)
        roster = read_roster(path)
        return await self.run_entries(company_id, roster, path.name)

    async def run_entries(
        self,
        company_id: str,
        roster: Iterable[RosterEntry],
        source_file_name: str,
    ) -> ReconciliationReport:
        """파싱된 로스터로 정합성 실행"""
        active = await self.store.list_assets(company_id, AssetStatus.ACTIVE)
        diff = diff_roster(roster, active)
        records = diff.to_staging_records(company_id, source_file_name)

        cleared = await self.store.clear_pending_staging(company_id)
        if records:
            await self.store.insert_staging_records(records)

        logger.info(
            f"정합성 검사 완료: {company_id} {source_file_name} {diff.counts} (cleared {cleared})",
            extra={"company_id": company_id, **diff.counts},
        )
        return ReconciliationReport(
            company_id=company_id,
            source_file_name=source_file_name,
            counts=diff.counts,
            records=records,
            cleared=cleared,
        )
