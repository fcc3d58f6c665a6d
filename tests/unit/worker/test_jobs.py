"""
worker/jobs.py 테스트

기간 범위 월 감가상각, 정합성 작업
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.mock.ledger_store import InMemoryLedgerStore
from adapters.mock.recompute import MockRecomputeService
from core.domain.models import Asset
from core.ledger.recompute import LedgerRecomputeService
from core.reconciliation.differ import ReconciliationRunner
from core.types import DiscrepancyType
from core.utils.periods import Period
from worker.jobs import run_monthly_catch_up, run_reconciliation


class TestRunMonthlyCatchUp:
    """run_monthly_catch_up 테스트"""

    @pytest.mark.asyncio
    async def test_processes_each_month(
        self,
        store: InMemoryLedgerStore,
        recompute: LedgerRecomputeService,
        purchased_cow: Asset,
    ) -> None:
        await store.insert_asset(purchased_cow)

        report = await run_monthly_catch_up(recompute, "farm-1", Period(2024, 2), Period(2024, 4))

        assert report.success
        assert report.processed == ["2024-02", "2024-03", "2024-04"]
        assert report.total_amount == Decimal("112.50")

    @pytest.mark.asyncio
    async def test_failures_recorded_and_skipped(self) -> None:
        mock = MockRecomputeService()
        mock.state.failing_periods.add("2024-03")

        report = await run_monthly_catch_up(mock, "farm-1", Period(2024, 2), Period(2024, 4))

        assert not report.success
        assert report.processed == ["2024-02", "2024-04"]
        assert list(report.failed) == ["2024-03"]
        assert mock.monthly_periods() == ["2024-02", "2024-03", "2024-04"]

    @pytest.mark.asyncio
    async def test_database_errors_recorded(self) -> None:
        mock = MockRecomputeService()
        mock.state.raise_errors = True

        report = await run_monthly_catch_up(mock, "farm-1", Period(2024, 1), Period(2024, 2))

        assert report.processed == []
        assert sorted(report.failed) == ["2024-01", "2024-02"]

    @pytest.mark.asyncio
    async def test_empty_range(self) -> None:
        mock = MockRecomputeService()

        report = await run_monthly_catch_up(mock, "farm-1", Period(2024, 5), Period(2024, 4))

        assert report.success
        assert report.processed == []
        assert mock.state.calls == []


class TestRunReconciliation:
    """run_reconciliation 테스트"""

    @pytest.mark.asyncio
    async def test_report(self, store: InMemoryLedgerStore, tmp_path: Path) -> None:
        await store.insert_asset(Asset.create(
            company_id="farm-1",
            tag="A1",
            purchase_price=Decimal("2000"),
            freshen_date=date(2023, 1, 1),
            birth_date=date(2020, 1, 1),
        ))
        path = tmp_path / "roster.csv"
        path.write_text("tag,birth_date\nA1,2020-01-01\nB2,2020-05-05\n", encoding="utf-8")

        report = await run_reconciliation(ReconciliationRunner(store), "farm-1", path)

        assert report.source_file_name == "roster.csv"
        assert report.counts[DiscrepancyType.MISSING_FROM_DATABASE.value] == 1
        assert report.counts[DiscrepancyType.NEEDS_DISPOSAL.value] == 0
