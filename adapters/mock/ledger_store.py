"""
Mock 원장 저장소

테스트용 메모리 내 원장 저장소.
ILedgerStore Protocol 준수, DatabaseError 주입으로 재시도 시나리오 지원.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Sequence

from adapters.models import JournalQuery
from core.domain.models import Asset, Disposition, ReconciliationStagingRecord
from core.errors import DatabaseError
from core.ledger.entry_builder import JournalEntry, JournalLine
from core.ledger.types import EntryType
from core.types import AssetStatus, ResolutionStatus


@dataclass
class MockLedgerState:
    """Mock 상태 (메모리 내 저장)"""

    # 분개 (삽입 순서 유지)
    entries: dict[str, JournalEntry] = field(default_factory=dict)

    # 라인 (entry_id -> lines), 헤더 없이 저장된 라인 포함
    lines: dict[str, list[JournalLine]] = field(default_factory=dict)

    # 자산 (asset_id -> Asset)
    assets: dict[str, Asset] = field(default_factory=dict)

    # 처분 (disposition_id -> Disposition)
    dispositions: dict[str, Disposition] = field(default_factory=dict)

    # 스테이징 (record_id -> record)
    staging: dict[str, ReconciliationStagingRecord] = field(default_factory=dict)

    # 실패 주입 (operation -> 남은 실패 횟수)
    failures: dict[str, int] = field(default_factory=dict)

    # 호출 횟수 (operation -> count)
    calls: dict[str, int] = field(default_factory=dict)


class InMemoryLedgerStore:
    """Mock 원장 저장소

    ILedgerStore Protocol 구현.

    사용 예시:
    ```python
    store = InMemoryLedgerStore()
    await store.insert_asset(asset)

    # 다음 두 번의 배치 저장을 실패시킴
    store.fail_next("insert_journal_batch", times=2)
    ```
    """

    def __init__(self, state: MockLedgerState | None = None):
        self.state = state or MockLedgerState()

    # -------------------------------------------------------------------------
    # 테스트 헬퍼
    # -------------------------------------------------------------------------

    def fail_next(self, operation: str, times: int = 1) -> None:
        """다음 times번의 operation 호출에서 DatabaseError 발생"""
        self.state.failures[operation] = times

    def call_count(self, operation: str) -> int:
        """operation 호출 횟수"""
        return self.state.calls.get(operation, 0)

    def _enter(self, operation: str) -> None:
        self.state.calls[operation] = self.state.calls.get(operation, 0) + 1
        remaining = self.state.failures.get(operation, 0)
        if remaining > 0:
            self.state.failures[operation] = remaining - 1
            raise DatabaseError(f"Injected failure: {operation}", operation=operation)

    @property
    def all_entries(self) -> list[JournalEntry]:
        """저장된 모든 분개 (라인 포함)"""
        return [self._with_lines(entry) for entry in self.state.entries.values()]

    def _with_lines(self, entry: JournalEntry) -> JournalEntry:
        lines = sorted(self.state.lines.get(entry.entry_id, []), key=lambda l: l.line_order)
        return replace(entry, lines=tuple(lines))

    # -------------------------------------------------------------------------
    # 분개
    # -------------------------------------------------------------------------

    async def insert_journal_entry(self, entry: JournalEntry) -> str:
        self._enter("insert_journal_entry")
        if entry.entry_id in self.state.entries:
            raise DatabaseError(f"Duplicate entry_id: {entry.entry_id}", "insert_journal_entry")
        self.state.entries[entry.entry_id] = replace(entry, lines=())
        return entry.entry_id

    async def insert_journal_lines(self, lines: Sequence[JournalLine]) -> int:
        self._enter("insert_journal_lines")
        for line in lines:
            self.state.lines.setdefault(line.entry_id, []).append(line)
        return len(lines)

    async def insert_journal_batch(self, entries: Sequence[JournalEntry]) -> int:
        self._enter("insert_journal_batch")
        for entry in entries:
            if entry.entry_id in self.state.entries:
                raise DatabaseError(f"Duplicate entry_id: {entry.entry_id}", "insert_journal_batch")

        line_count = 0
        for entry in entries:
            self.state.entries[entry.entry_id] = replace(entry, lines=())
            self.state.lines[entry.entry_id] = list(entry.lines)
            line_count += len(entry.lines)
        return line_count

    def _entry_matches(self, entry: JournalEntry, query: JournalQuery) -> bool:
        if query.company_id is not None and entry.company_id != query.company_id:
            return False
        if query.entry_type is not None and entry.entry_type != query.entry_type:
            return False
        if query.month is not None and entry.month != query.month:
            return False
        if query.year is not None and entry.year != query.year:
            return False
        return True

    @staticmethod
    def _line_matches(line: JournalLine, query: JournalQuery) -> bool:
        if query.asset_id is not None and line.asset_id != query.asset_id:
            return False
        if query.account_code is not None and line.account_code != query.account_code:
            return False
        return True

    def _ordered_entries(self) -> list[JournalEntry]:
        # 분개일 순, 같은 날은 삽입 순
        return sorted(self.state.entries.values(), key=lambda e: e.entry_date)

    async def query_journal_lines(self, query: JournalQuery) -> list[JournalLine]:
        self._enter("query_journal_lines")
        result: list[JournalLine] = []
        for entry in self._ordered_entries():
            if not self._entry_matches(entry, query):
                continue
            lines = sorted(self.state.lines.get(entry.entry_id, []), key=lambda l: l.line_order)
            result.extend(line for line in lines if self._line_matches(line, query))
        return result

    async def query_journal_entries(self, query: JournalQuery) -> list[JournalEntry]:
        self._enter("query_journal_entries")
        result: list[JournalEntry] = []
        for entry in self._ordered_entries():
            if not self._entry_matches(entry, query):
                continue
            full = self._with_lines(entry)
            if (query.asset_id is not None or query.account_code is not None) and not any(
                self._line_matches(line, query) for line in full.lines
            ):
                continue
            result.append(full)
        return result

    async def query_existing_entry(
        self,
        company_id: str,
        entry_type: EntryType,
        month: int,
        year: int,
    ) -> bool:
        self._enter("query_existing_entry")
        return any(
            e.company_id == company_id
            and e.entry_type == entry_type
            and e.month == month
            and e.year == year
            for e in self.state.entries.values()
        )

    # -------------------------------------------------------------------------
    # 자산
    # -------------------------------------------------------------------------

    async def insert_asset(self, asset: Asset) -> None:
        self._enter("insert_asset")
        if asset.asset_id in self.state.assets:
            raise DatabaseError(f"Duplicate asset_id: {asset.asset_id}", "insert_asset")
        self.state.assets[asset.asset_id] = asset

    async def get_asset(self, asset_id: str) -> Asset | None:
        self._enter("get_asset")
        return self.state.assets.get(asset_id)

    async def list_assets(
        self,
        company_id: str,
        status: AssetStatus | None = None,
    ) -> list[Asset]:
        self._enter("list_assets")
        assets = [
            a for a in self.state.assets.values()
            if a.company_id == company_id and (status is None or a.status == status)
        ]
        return sorted(assets, key=lambda a: (a.tag, a.asset_id))

    async def update_asset_status(
        self,
        asset_id: str,
        status: AssetStatus,
        disposition_id: str | None,
    ) -> None:
        self._enter("update_asset_status")
        asset = self.state.assets[asset_id]
        self.state.assets[asset_id] = replace(asset, status=status, disposition_id=disposition_id)

    async def update_asset_values(
        self,
        asset_id: str,
        accumulated_depreciation: Decimal,
        current_value: Decimal,
    ) -> None:
        self._enter("update_asset_values")
        asset = self.state.assets[asset_id]
        self.state.assets[asset_id] = replace(
            asset,
            accumulated_depreciation=accumulated_depreciation,
            current_value=current_value,
        )

    # -------------------------------------------------------------------------
    # 처분
    # -------------------------------------------------------------------------

    async def upsert_disposition(self, record: Disposition) -> None:
        self._enter("upsert_disposition")
        # 자산당 하나
        for disposition_id, existing in list(self.state.dispositions.items()):
            if existing.asset_id == record.asset_id:
                del self.state.dispositions[disposition_id]
        self.state.dispositions[record.disposition_id] = record

    async def list_dispositions(self, asset_id: str) -> list[Disposition]:
        self._enter("list_dispositions")
        return [d for d in self.state.dispositions.values() if d.asset_id == asset_id]

    async def delete_disposition(self, disposition_id: str) -> None:
        self._enter("delete_disposition")
        self.state.dispositions.pop(disposition_id, None)

    # -------------------------------------------------------------------------
    # 정합성 스테이징
    # -------------------------------------------------------------------------

    async def clear_pending_staging(self, company_id: str) -> int:
        self._enter("clear_pending_staging")
        pending = [
            record_id for record_id, record in self.state.staging.items()
            if record.company_id == company_id
            and record.resolution_status == ResolutionStatus.PENDING
        ]
        for record_id in pending:
            del self.state.staging[record_id]
        return len(pending)

    async def insert_staging_records(
        self,
        records: Sequence[ReconciliationStagingRecord],
    ) -> int:
        self._enter("insert_staging_records")
        for record in records:
            self.state.staging[record.record_id] = record
        return len(records)

    async def list_staging_records(
        self,
        company_id: str,
        status: ResolutionStatus | None = None,
    ) -> list[ReconciliationStagingRecord]:
        self._enter("list_staging_records")
        records = [
            r for r in self.state.staging.values()
            if r.company_id == company_id and (status is None or r.resolution_status == status)
        ]
        return sorted(records, key=lambda r: r.record_id)
