"""
원장 저장소 (SQLite)

분개, 자산, 처분 기록, 정합성 스테이징 레코드 저장 및 조회.
조회 결과는 저장소 경계에서 명시적으로 도메인 타입으로 변환.
sqlite3 오류는 DatabaseError로 감싸서 상위 재시도 로직에 전달.
"""

from __future__ import annotations

import functools
import logging
import sqlite3
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence, TypeVar

from adapters.models import JournalQuery
from core.domain.models import Asset, Disposition, ReconciliationStagingRecord
from core.errors import DatabaseError
from core.ledger.entry_builder import JournalEntry, JournalLine
from core.ledger.types import EntryType, LineType
from core.types import (
    AcquisitionType,
    AssetStatus,
    DiscrepancyType,
    DispositionType,
    ResolutionStatus,
)

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLite 바인딩 변수 제한 회피용 IN 절 크기
_IN_CHUNK = 500

_ENTRY_COLUMNS = (
    "entry_id, company_id, entry_date, month, year, entry_type, "
    "description, total_amount, reverses_entry_id"
)
_LINE_COLUMNS = (
    "line_id, entry_id, asset_id, account_code, account_name, description, "
    "debit_amount, credit_amount, line_type, line_order, reverses_line_id"
)
_ASSET_COLUMNS = (
    "asset_id, company_id, tag, purchase_price, salvage_value, freshen_date, "
    "birth_date, acquisition_type, status, disposition_id, "
    "accumulated_depreciation, current_value"
)
_DISPOSITION_COLUMNS = (
    "disposition_id, asset_id, company_id, disposition_date, disposition_type, "
    "sale_amount, final_book_value, gain_loss, journal_entry_id, notes"
)
_STAGING_COLUMNS = (
    "record_id, company_id, discrepancy_type, asset_id, tag, birth_date, "
    "source_file_name, resolution_status, resolution_action"
)


def wrap_db_errors(operation: str) -> Callable[
    [Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]
]:
    """sqlite3.Error → DatabaseError 변환 데코레이터"""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except sqlite3.Error as e:
                logger.error(f"DB 오류 ({operation}): {e}", extra={"operation": operation})
                raise DatabaseError(f"{operation} failed: {e}", operation=operation) from e
        return wrapper

    return decorator


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _row_to_line(row: tuple[Any, ...]) -> JournalLine:
    return JournalLine(
        line_id=row[0],
        entry_id=row[1],
        asset_id=row[2],
        account_code=row[3],
        account_name=row[4],
        description=row[5],
        debit_amount=Decimal(row[6]),
        credit_amount=Decimal(row[7]),
        line_type=LineType(row[8]),
        line_order=row[9],
        reverses_line_id=row[10],
    )


def _row_to_entry(row: tuple[Any, ...], lines: Sequence[JournalLine]) -> JournalEntry:
    return JournalEntry(
        entry_id=row[0],
        company_id=row[1],
        entry_date=date.fromisoformat(row[2]),
        month=row[3],
        year=row[4],
        entry_type=EntryType(row[5]),
        description=row[6],
        total_amount=Decimal(row[7]),
        lines=tuple(lines),
        reverses_entry_id=row[8],
    )


def _row_to_asset(row: tuple[Any, ...]) -> Asset:
    return Asset(
        asset_id=row[0],
        company_id=row[1],
        tag=row[2],
        purchase_price=Decimal(row[3]),
        salvage_value=Decimal(row[4]),
        freshen_date=_parse_date(row[5]),
        birth_date=_parse_date(row[6]),
        acquisition_type=AcquisitionType(row[7]),
        status=AssetStatus(row[8]),
        disposition_id=row[9],
        accumulated_depreciation=Decimal(row[10]),
        current_value=Decimal(row[11]),
    )


def _row_to_disposition(row: tuple[Any, ...]) -> Disposition:
    return Disposition(
        disposition_id=row[0],
        asset_id=row[1],
        company_id=row[2],
        disposition_date=date.fromisoformat(row[3]),
        disposition_type=DispositionType(row[4]),
        sale_amount=Decimal(row[5]),
        final_book_value=Decimal(row[6]),
        gain_loss=Decimal(row[7]),
        journal_entry_id=row[8],
        notes=row[9],
    )


def _row_to_staging(row: tuple[Any, ...]) -> ReconciliationStagingRecord:
    return ReconciliationStagingRecord(
        record_id=row[0],
        company_id=row[1],
        discrepancy_type=DiscrepancyType(row[2]),
        asset_id=row[3],
        tag=row[4],
        birth_date=row[5],
        source_file_name=row[6],
        resolution_status=ResolutionStatus(row[7]),
        resolution_action=row[8],
    )


class LedgerStore:
    """원장 저장소 (ILedgerStore 구현)

    Args:
        db: SQLite 어댑터

    사용 예시:
    ```python
    store = LedgerStore(db)
    await store.insert_journal_batch([entry])
    lines = await store.query_journal_lines(JournalQuery(asset_id="cow-1"))
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 분개 저장
    # -------------------------------------------------------------------------

    @wrap_db_errors("insert_journal_entry")
    async def insert_journal_entry(self, entry: JournalEntry) -> str:
        """분개 헤더 저장

        Returns:
            저장된 entry_id
        """
        async with self.db.transaction():
            await self._insert_entry_row(entry)
        logger.debug(f"Saved journal entry: {entry.entry_id}")
        return entry.entry_id

    @wrap_db_errors("insert_journal_lines")
    async def insert_journal_lines(self, lines: Sequence[JournalLine]) -> int:
        """분개 라인 저장"""
        async with self.db.transaction():
            await self._insert_line_rows(lines)
        return len(lines)

    @wrap_db_errors("insert_journal_batch")
    async def insert_journal_batch(self, entries: Sequence[JournalEntry]) -> int:
        """분개 묶음 저장 (단일 트랜잭션)

        Returns:
            저장된 라인 수
        """
        line_count = 0
        async with self.db.transaction():
            for entry in entries:
                await self._insert_entry_row(entry)
                await self._insert_line_rows(entry.lines)
                line_count += len(entry.lines)

        logger.debug(
            f"Saved journal batch: {len(entries)} entries, {line_count} lines",
        )
        return line_count

    async def _insert_entry_row(self, entry: JournalEntry) -> None:
        await self.db.execute(
            f"""
            INSERT INTO journal_entry ({_ENTRY_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.company_id,
                entry.entry_date.isoformat(),
                entry.month,
                entry.year,
                EntryType(entry.entry_type).value,
                entry.description,
                str(entry.total_amount),
                entry.reverses_entry_id,
            ),
        )

    async def _insert_line_rows(self, lines: Sequence[JournalLine]) -> None:
        await self.db.executemany(
            f"""
            INSERT INTO journal_line ({_LINE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    line.line_id,
                    line.entry_id,
                    line.asset_id,
                    line.account_code,
                    line.account_name,
                    line.description,
                    str(line.debit_amount),
                    str(line.credit_amount),
                    LineType(line.line_type).value,
                    line.line_order,
                    line.reverses_line_id,
                )
                for line in lines
            ],
        )

    # -------------------------------------------------------------------------
    # 분개 조회
    # -------------------------------------------------------------------------

    @staticmethod
    def _where(query: JournalQuery, entry_alias: str, line_alias: str | None) -> tuple[str, list[Any]]:
        """조회 조건 → WHERE 절

        line_alias가 None이면 자산/계정 조건을 서브쿼리로 처리.
        """
        conditions: list[str] = []
        params: list[Any] = []

        if query.company_id is not None:
            conditions.append(f"{entry_alias}.company_id = ?")
            params.append(query.company_id)
        if query.entry_type is not None:
            conditions.append(f"{entry_alias}.entry_type = ?")
            params.append(EntryType(query.entry_type).value)
        if query.month is not None:
            conditions.append(f"{entry_alias}.month = ?")
            params.append(query.month)
        if query.year is not None:
            conditions.append(f"{entry_alias}.year = ?")
            params.append(query.year)

        for column, value in (("asset_id", query.asset_id), ("account_code", query.account_code)):
            if value is None:
                continue
            if line_alias is None:
                conditions.append(
                    f"{entry_alias}.entry_id IN "
                    f"(SELECT entry_id FROM journal_line WHERE {column} = ?)"
                )
            else:
                conditions.append(f"{line_alias}.{column} = ?")
            params.append(value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    @wrap_db_errors("query_journal_lines")
    async def query_journal_lines(self, query: JournalQuery) -> list[JournalLine]:
        """조건에 맞는 분개 라인 조회 (분개일, 라인 순서 순)"""
        where, params = self._where(query, "e", "l")
        line_columns = ", ".join(f"l.{c.strip()}" for c in _LINE_COLUMNS.split(","))
        rows = await self.db.fetchall(
            f"""
            SELECT {line_columns}
            FROM journal_line l
            JOIN journal_entry e ON e.entry_id = l.entry_id
            {where}
            ORDER BY e.entry_date, e.rowid, l.line_order
            """,
            tuple(params),
        )
        return [_row_to_line(row) for row in rows]

    @wrap_db_errors("query_journal_entries")
    async def query_journal_entries(self, query: JournalQuery) -> list[JournalEntry]:
        """조건에 맞는 분개 조회 (라인 포함, 분개일 순)"""
        where, params = self._where(query, "e", None)
        entry_columns = ", ".join(f"e.{c.strip()}" for c in _ENTRY_COLUMNS.split(","))
        rows = await self.db.fetchall(
            f"""
            SELECT {entry_columns}
            FROM journal_entry e
            {where}
            ORDER BY e.entry_date, e.rowid
            """,
            tuple(params),
        )
        if not rows:
            return []

        lines_by_entry = await self._load_lines([row[0] for row in rows])
        return [_row_to_entry(row, lines_by_entry.get(row[0], [])) for row in rows]

    async def _load_lines(self, entry_ids: list[str]) -> dict[str, list[JournalLine]]:
        lines_by_entry: dict[str, list[JournalLine]] = {}
        for start in range(0, len(entry_ids), _IN_CHUNK):
            chunk = entry_ids[start:start + _IN_CHUNK]
            placeholders = ", ".join("?" for _ in chunk)
            rows = await self.db.fetchall(
                f"""
                SELECT {_LINE_COLUMNS}
                FROM journal_line
                WHERE entry_id IN ({placeholders})
                ORDER BY entry_id, line_order
                """,
                tuple(chunk),
            )
            for row in rows:
                lines_by_entry.setdefault(row[1], []).append(_row_to_line(row))
        return lines_by_entry

    @wrap_db_errors("query_existing_entry")
    async def query_existing_entry(
        self,
        company_id: str,
        entry_type: EntryType,
        month: int,
        year: int,
    ) -> bool:
        """(회사, 유형, 월, 연도) 분개 존재 여부"""
        row = await self.db.fetchone(
            """
            SELECT 1 FROM journal_entry
            WHERE company_id = ? AND entry_type = ? AND month = ? AND year = ?
            LIMIT 1
            """,
            (company_id, EntryType(entry_type).value, month, year),
        )
        return row is not None

    # -------------------------------------------------------------------------
    # 자산
    # -------------------------------------------------------------------------

    @wrap_db_errors("insert_asset")
    async def insert_asset(self, asset: Asset) -> None:
        """자산 저장"""
        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO asset ({_ASSET_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    asset.asset_id,
                    asset.company_id,
                    asset.tag,
                    str(asset.purchase_price),
                    str(asset.salvage_value),
                    _iso(asset.freshen_date),
                    _iso(asset.birth_date),
                    AcquisitionType(asset.acquisition_type).value,
                    AssetStatus(asset.status).value,
                    asset.disposition_id,
                    str(asset.accumulated_depreciation),
                    str(asset.current_value),
                ),
            )

    @wrap_db_errors("get_asset")
    async def get_asset(self, asset_id: str) -> Asset | None:
        """자산 조회"""
        row = await self.db.fetchone(
            f"SELECT {_ASSET_COLUMNS} FROM asset WHERE asset_id = ?",
            (asset_id,),
        )
        return _row_to_asset(row) if row else None

    @wrap_db_errors("list_assets")
    async def list_assets(
        self,
        company_id: str,
        status: AssetStatus | None = None,
    ) -> list[Asset]:
        """회사 자산 목록 (tag 순)"""
        if status is None:
            rows = await self.db.fetchall(
                f"SELECT {_ASSET_COLUMNS} FROM asset WHERE company_id = ? ORDER BY tag, asset_id",
                (company_id,),
            )
        else:
            rows = await self.db.fetchall(
                f"""
                SELECT {_ASSET_COLUMNS} FROM asset
                WHERE company_id = ? AND status = ?
                ORDER BY tag, asset_id
                """,
                (company_id, AssetStatus(status).value),
            )
        return [_row_to_asset(row) for row in rows]

    @wrap_db_errors("update_asset_status")
    async def update_asset_status(
        self,
        asset_id: str,
        status: AssetStatus,
        disposition_id: str | None,
    ) -> None:
        """자산 상태 변경"""
        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE asset
                SET status = ?, disposition_id = ?, updated_at = datetime('now')
                WHERE asset_id = ?
                """,
                (AssetStatus(status).value, disposition_id, asset_id),
            )

    @wrap_db_errors("update_asset_values")
    async def update_asset_values(
        self,
        asset_id: str,
        accumulated_depreciation: Decimal,
        current_value: Decimal,
    ) -> None:
        """감가상각 스냅샷 갱신"""
        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE asset
                SET accumulated_depreciation = ?, current_value = ?, updated_at = datetime('now')
                WHERE asset_id = ?
                """,
                (str(accumulated_depreciation), str(current_value), asset_id),
            )

    # -------------------------------------------------------------------------
    # 처분
    # -------------------------------------------------------------------------

    @wrap_db_errors("upsert_disposition")
    async def upsert_disposition(self, record: Disposition) -> None:
        """처분 기록 저장 (asset_id 충돌 시 갱신)"""
        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO disposition ({_DISPOSITION_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(asset_id) DO UPDATE SET
                    disposition_id = excluded.disposition_id,
                    disposition_date = excluded.disposition_date,
                    disposition_type = excluded.disposition_type,
                    sale_amount = excluded.sale_amount,
                    final_book_value = excluded.final_book_value,
                    gain_loss = excluded.gain_loss,
                    journal_entry_id = excluded.journal_entry_id,
                    notes = excluded.notes
                """,
                (
                    record.disposition_id,
                    record.asset_id,
                    record.company_id,
                    record.disposition_date.isoformat(),
                    DispositionType(record.disposition_type).value,
                    str(record.sale_amount),
                    str(record.final_book_value),
                    str(record.gain_loss),
                    record.journal_entry_id,
                    record.notes,
                ),
            )

    @wrap_db_errors("list_dispositions")
    async def list_dispositions(self, asset_id: str) -> list[Disposition]:
        """자산의 처분 기록"""
        rows = await self.db.fetchall(
            f"SELECT {_DISPOSITION_COLUMNS} FROM disposition WHERE asset_id = ?",
            (asset_id,),
        )
        return [_row_to_disposition(row) for row in rows]

    @wrap_db_errors("delete_disposition")
    async def delete_disposition(self, disposition_id: str) -> None:
        """처분 기록 삭제"""
        async with self.db.transaction():
            await self.db.execute(
                "DELETE FROM disposition WHERE disposition_id = ?",
                (disposition_id,),
            )

    # -------------------------------------------------------------------------
    # 정합성 스테이징
    # -------------------------------------------------------------------------

    @wrap_db_errors("clear_pending_staging")
    async def clear_pending_staging(self, company_id: str) -> int:
        """회사의 PENDING 스테이징 레코드 삭제"""
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                DELETE FROM reconciliation_staging
                WHERE company_id = ? AND resolution_status = ?
                """,
                (company_id, ResolutionStatus.PENDING.value),
            )
        return cursor.rowcount

    @wrap_db_errors("insert_staging_records")
    async def insert_staging_records(
        self,
        records: Sequence[ReconciliationStagingRecord],
    ) -> int:
        """스테이징 레코드 저장

        같은 record_id의 처리 완료 레코드가 있으면 새 PENDING 레코드로 교체.
        """
        async with self.db.transaction():
            await self.db.executemany(
                f"""
                INSERT OR REPLACE INTO reconciliation_staging ({_STAGING_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        record.record_id,
                        record.company_id,
                        DiscrepancyType(record.discrepancy_type).value,
                        record.asset_id,
                        record.tag,
                        record.birth_date,
                        record.source_file_name,
                        ResolutionStatus(record.resolution_status).value,
                        record.resolution_action,
                    )
                    for record in records
                ],
            )
        return len(records)

    @wrap_db_errors("list_staging_records")
    async def list_staging_records(
        self,
        company_id: str,
        status: ResolutionStatus | None = None,
    ) -> list[ReconciliationStagingRecord]:
        """스테이징 레코드 조회 (record_id 순)"""
        if status is None:
            rows = await self.db.fetchall(
                f"""
                SELECT {_STAGING_COLUMNS} FROM reconciliation_staging
                WHERE company_id = ? ORDER BY record_id
                """,
                (company_id,),
            )
        else:
            rows = await self.db.fetchall(
                f"""
                SELECT {_STAGING_COLUMNS} FROM reconciliation_staging
                WHERE company_id = ? AND resolution_status = ?
                ORDER BY record_id
                """,
                (company_id, ResolutionStatus(status).value),
            )
        return [_row_to_staging(row) for row in rows]
