"""Mock 재계산 서비스 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from adapters.mock.recompute import MockRecomputeService
from adapters.models import RecomputeResult
from core.errors import DatabaseError


class _FixedDelegate:
    """고정 결과를 반환하는 위임 대상"""

    async def catch_up_depreciation_to_date(self, asset_id: str, through: date) -> RecomputeResult:
        return RecomputeResult(success=True, processed_amount=Decimal("37.50"), entries_created=1)

    async def process_monthly_depreciation(self, company_id: str, month: int, year: int) -> RecomputeResult:
        return RecomputeResult(success=True, processed_amount=Decimal("75.00"), entries_created=1)


class TestMockRecomputeService:
    """MockRecomputeService 테스트"""

    @pytest.mark.asyncio
    async def test_records_calls(self) -> None:
        mock = MockRecomputeService()

        await mock.catch_up_depreciation_to_date("cow-1", date(2024, 6, 15))
        await mock.process_monthly_depreciation("farm-1", 12, 2023)
        await mock.process_monthly_depreciation("farm-1", 1, 2024)

        assert mock.catch_up_calls() == [("cow-1", date(2024, 6, 15))]
        assert mock.monthly_periods() == ["2023-12", "2024-01"]

    @pytest.mark.asyncio
    async def test_default_result_is_empty_success(self) -> None:
        result = await MockRecomputeService().process_monthly_depreciation("farm-1", 1, 2024)

        assert result.success
        assert result.is_noop

    @pytest.mark.asyncio
    async def test_delegates(self) -> None:
        mock = MockRecomputeService(delegate=_FixedDelegate())

        catch_up = await mock.catch_up_depreciation_to_date("cow-1", date(2024, 6, 15))
        monthly = await mock.process_monthly_depreciation("farm-1", 1, 2024)

        assert catch_up.processed_amount == Decimal("37.50")
        assert monthly.processed_amount == Decimal("75.00")

    @pytest.mark.asyncio
    async def test_failing_periods(self) -> None:
        mock = MockRecomputeService(delegate=_FixedDelegate())
        mock.state.failing_periods.add("2024-02")

        ok = await mock.process_monthly_depreciation("farm-1", 1, 2024)
        failed = await mock.process_monthly_depreciation("farm-1", 2, 2024)

        assert ok.success
        assert not failed.success
        assert "2024-02" in failed.error

    @pytest.mark.asyncio
    async def test_fail_catch_up(self) -> None:
        mock = MockRecomputeService(delegate=_FixedDelegate())
        mock.state.fail_catch_up = True

        result = await mock.catch_up_depreciation_to_date("cow-1", date(2024, 6, 15))

        assert not result.success
        assert mock.catch_up_calls() == [("cow-1", date(2024, 6, 15))]

    @pytest.mark.asyncio
    async def test_raise_errors(self) -> None:
        mock = MockRecomputeService()
        mock.state.raise_errors = True

        with pytest.raises(DatabaseError):
            await mock.process_monthly_depreciation("farm-1", 1, 2024)
        with pytest.raises(DatabaseError):
            await mock.catch_up_depreciation_to_date("cow-1", date(2024, 6, 15))
