"""
Mock 재계산 서비스

테스트용 Mock IRecomputeService.
호출을 기록하고, 위임 대상이 있으면 그대로 전달.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from adapters.models import RecomputeResult
from core.errors import DatabaseError


@dataclass
class RecomputeCall:
    """재계산 호출 기록"""

    operation: str  # catch_up, monthly
    args: tuple[Any, ...]


@dataclass
class MockRecomputeState:
    """Mock 상태"""

    calls: list[RecomputeCall] = field(default_factory=list)

    # 실패 결과를 반환할 월 ("YYYY-MM")
    failing_periods: set[str] = field(default_factory=set)

    # True면 catch-up이 success=False 반환
    fail_catch_up: bool = False

    # True면 모든 호출에서 DatabaseError 발생
    raise_errors: bool = False


class MockRecomputeService:
    """Mock 재계산 서비스

    IRecomputeService Protocol 구현.

    사용 예시:
    ```python
    recompute = MockRecomputeService(delegate=LedgerRecomputeService(store, coordinator))
    recompute.state.failing_periods.add("2024-05")

    await manager.reinstate("cow-1")
    assert recompute.monthly_periods() == ["2024-04", "2024-05"]
    ```
    """

    def __init__(
        self,
        delegate: Any = None,
        state: MockRecomputeState | None = None,
    ):
        """
        Args:
            delegate: 실제 처리를 위임할 IRecomputeService (None이면 빈 성공 결과)
            state: 공유 상태
        """
        self.delegate = delegate
        self.state = state or MockRecomputeState()

    def monthly_periods(self) -> list[str]:
        """process_monthly_depreciation 호출 기간 목록"""
        return [
            f"{call.args[2]:04d}-{call.args[1]:02d}"
            for call in self.state.calls
            if call.operation == "monthly"
        ]

    def catch_up_calls(self) -> list[tuple[Any, ...]]:
        return [call.args for call in self.state.calls if call.operation == "catch_up"]

    async def catch_up_depreciation_to_date(
        self,
        asset_id: str,
        through: date,
    ) -> RecomputeResult:
        self.state.calls.append(RecomputeCall("catch_up", (asset_id, through)))
        if self.state.raise_errors:
            raise DatabaseError("Injected recompute failure", operation="catch_up")
        if self.state.fail_catch_up:
            return RecomputeResult(success=False, error="Injected catch-up failure")
        if self.delegate is not None:
            return await self.delegate.catch_up_depreciation_to_date(asset_id, through)
        return RecomputeResult(success=True)

    async def process_monthly_depreciation(
        self,
        company_id: str,
        month: int,
        year: int,
    ) -> RecomputeResult:
        self.state.calls.append(RecomputeCall("monthly", (company_id, month, year)))
        if self.state.raise_errors:
            raise DatabaseError("Injected recompute failure", operation="monthly")
        if f"{year:04d}-{month:02d}" in self.state.failing_periods:
            return RecomputeResult(success=False, error=f"Injected failure {year:04d}-{month:02d}")
        if self.delegate is not None:
            return await self.delegate.process_monthly_depreciation(company_id, month, year)
        return RecomputeResult(success=True)
