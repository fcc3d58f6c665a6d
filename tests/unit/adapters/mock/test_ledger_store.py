"""
Mock 원장 저장소 테스트

InMemoryLedgerStore 조회 조건, 실패 주입, 자산당 처분 하나 규칙.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from adapters.mock.ledger_store import InMemoryLedgerStore
from adapters.models import JournalQuery
from core.domain.models import Asset, Disposition
from core.errors import DatabaseError
from core.ledger.entry_builder import JournalEntryBuilder
from core.ledger.types import AccountCodes, EntryType
from core.types import AssetStatus, DispositionType


def _disposition(disposition_id: str, asset_id: str = "cow-1042") -> Disposition:
    return Disposition(
        disposition_id=disposition_id,
        asset_id=asset_id,
        company_id="farm-1",
        disposition_date=date(2024, 6, 15),
        disposition_type=DispositionType.DEATH,
        sale_amount=Decimal("0"),
        final_book_value=Decimal("2312.50"),
        gain_loss=Decimal("-2312.50"),
        journal_entry_id="entry-1",
    )


class TestFailureInjection:
    """fail_next 테스트"""

    @pytest.mark.asyncio
    async def test_fails_given_times(self, purchased_cow: Asset) -> None:
        store = InMemoryLedgerStore()
        store.fail_next("insert_asset", times=2)

        for _ in range(2):
            with pytest.raises(DatabaseError) as exc_info:
                await store.insert_asset(purchased_cow)
            assert exc_info.value.operation == "insert_asset"

        await store.insert_asset(purchased_cow)

        assert store.call_count("insert_asset") == 3
        assert await store.get_asset("cow-1042") == purchased_cow

    @pytest.mark.asyncio
    async def test_duplicate_asset(self, purchased_cow: Asset) -> None:
        store = InMemoryLedgerStore()
        await store.insert_asset(purchased_cow)

        with pytest.raises(DatabaseError):
            await store.insert_asset(purchased_cow)


class TestJournal:
    """분개 저장/조회 테스트"""

    @pytest.mark.asyncio
    async def test_batch_rejects_duplicates_atomically(
        self,
        builder: JournalEntryBuilder,
        purchased_cow: Asset,
        raised_cow: Asset,
    ) -> None:
        """중복 entry_id가 있으면 묶음 전체를 저장하지 않음"""
        store = InMemoryLedgerStore()
        first = builder.build_acquisition(purchased_cow, date(2024, 1, 15))
        await store.insert_journal_batch([first])

        second = builder.build_acquisition(raised_cow, date(2024, 2, 1))
        with pytest.raises(DatabaseError):
            await store.insert_journal_batch([second, first])

        assert [e.entry_id for e in store.all_entries] == [first.entry_id]

    @pytest.mark.asyncio
    async def test_header_and_lines_separately(
        self,
        builder: JournalEntryBuilder,
        purchased_cow: Asset,
    ) -> None:
        store = InMemoryLedgerStore()
        entry = builder.build_acquisition(purchased_cow, date(2024, 1, 15))

        assert await store.insert_journal_entry(entry) == entry.entry_id
        assert await store.insert_journal_lines(entry.lines) == 2

        assert store.all_entries == [entry]

    @pytest.mark.asyncio
    async def test_query_filters(
        self,
        builder: JournalEntryBuilder,
        purchased_cow: Asset,
        raised_cow: Asset,
    ) -> None:
        store = InMemoryLedgerStore()
        await store.insert_journal_batch([
            builder.build_acquisition(purchased_cow, date(2024, 1, 15)),
            builder.build_acquisition(raised_cow, date(2024, 2, 1)),
        ])

        lines = await store.query_journal_lines(
            JournalQuery(asset_id="cow-2001", account_code=AccountCodes.DAIRY_COWS)
        )
        entries = await store.query_journal_entries(JournalQuery(month=1, year=2024))

        assert len(lines) == 1
        assert lines[0].debit_amount == Decimal("1800.00")
        assert [e.entry_date for e in entries] == [date(2024, 1, 15)]

    @pytest.mark.asyncio
    async def test_entries_ordered_by_date(
        self,
        builder: JournalEntryBuilder,
        purchased_cow: Asset,
        raised_cow: Asset,
    ) -> None:
        store = InMemoryLedgerStore()
        await store.insert_journal_batch([
            builder.build_acquisition(raised_cow, date(2024, 2, 1)),
            builder.build_acquisition(purchased_cow, date(2024, 1, 15)),
        ])

        entries = await store.query_journal_entries(JournalQuery(company_id="farm-1"))

        assert [e.entry_date for e in entries] == [date(2024, 1, 15), date(2024, 2, 1)]

    @pytest.mark.asyncio
    async def test_query_existing_entry(
        self,
        builder: JournalEntryBuilder,
        purchased_cow: Asset,
    ) -> None:
        store = InMemoryLedgerStore()
        await store.insert_journal_batch([builder.build_acquisition(purchased_cow, date(2024, 1, 15))])

        assert await store.query_existing_entry("farm-1", EntryType.ACQUISITION, 1, 2024)
        assert not await store.query_existing_entry("farm-1", EntryType.ACQUISITION, 2, 2024)
        assert not await store.query_existing_entry("farm-1", EntryType.DEPRECIATION, 1, 2024)


class TestAssetsAndDispositions:
    """자산/처분 테스트"""

    @pytest.mark.asyncio
    async def test_list_assets_by_status(self, purchased_cow: Asset, raised_cow: Asset) -> None:
        store = InMemoryLedgerStore()
        await store.insert_asset(raised_cow)
        await store.insert_asset(replace(purchased_cow, status=AssetStatus.DISPOSED))

        assert [a.tag for a in await store.list_assets("farm-1")] == ["1042", "2001"]
        assert [a.tag for a in await store.list_assets("farm-1", AssetStatus.ACTIVE)] == ["2001"]
        assert await store.list_assets("farm-2") == []

    @pytest.mark.asyncio
    async def test_update_status_and_values(self, purchased_cow: Asset) -> None:
        store = InMemoryLedgerStore()
        await store.insert_asset(purchased_cow)

        await store.update_asset_status("cow-1042", AssetStatus.DISPOSED, "disp-1")
        await store.update_asset_values("cow-1042", Decimal("187.50"), Decimal("2312.50"))

        asset = await store.get_asset("cow-1042")
        assert asset.status == AssetStatus.DISPOSED
        assert asset.disposition_id == "disp-1"
        assert asset.current_value == Decimal("2312.50")

    @pytest.mark.asyncio
    async def test_one_disposition_per_asset(self) -> None:
        store = InMemoryLedgerStore()

        await store.upsert_disposition(_disposition("disp-1"))
        await store.upsert_disposition(_disposition("disp-2"))
        await store.upsert_disposition(_disposition("disp-3", asset_id="cow-2001"))

        records = await store.list_dispositions("cow-1042")
        assert [d.disposition_id for d in records] == ["disp-2"]

    @pytest.mark.asyncio
    async def test_delete_disposition(self) -> None:
        store = InMemoryLedgerStore()
        await store.upsert_disposition(_disposition("disp-1"))

        await store.delete_disposition("disp-1")
        await store.delete_disposition("missing")

        assert await store.list_dispositions("cow-1042") == []
