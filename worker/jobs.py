"""
작업 함수

TaskQueue에 등록되는 작업 단위.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

from core.errors import DatabaseError
from core.reconciliation.differ import ReconciliationReport, ReconciliationRunner
from core.utils.periods import Period, iter_periods

if TYPE_CHECKING:
    from adapters.interfaces import IRecomputeService

logger = logging.getLogger(__name__)


@dataclass
class CatchUpReport:
    """기간 범위 월 감가상각 결과"""

    company_id: str
    processed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # 기간 -> 오류
    total_amount: Decimal = Decimal("0")

    @property
    def success(self) -> bool:
        return not self.failed


async def run_monthly_catch_up(
    recompute: "IRecomputeService",
    company_id: str,
    start: Period,
    end: Period,
) -> CatchUpReport:
    """start~end(포함) 월 감가상각 순차 실행

    월별 실패는 기록 후 다음 달 계속 진행.
    """
    report = CatchUpReport(company_id=company_id)

    for period in iter_periods(start, end):
        try:
            result = await recompute.process_monthly_depreciation(
                company_id, period.month, period.year
            )
        except DatabaseError as e:
            report.failed[period.label] = str(e)
            logger.warning(f"월 감가상각 실패: {company_id} {period.label}: {e}")
            continue

        if not result.success:
            report.failed[period.label] = result.error or "unknown error"
            logger.warning(f"월 감가상각 실패: {company_id} {period.label}: {result.error}")
            continue

        report.processed.append(period.label)
        report.total_amount += result.processed_amount

    logger.info(
        f"월 감가상각 범위 처리 완료: {company_id} {start.label}~{end.label} "
        f"processed={len(report.processed)} failed={len(report.failed)} total={report.total_amount}",
        extra={"company_id": company_id},
    )
    return report


async def run_reconciliation(
    runner: ReconciliationRunner,
    company_id: str,
    roster_path: str | Path,
) -> ReconciliationReport:
    """로스터 파일 정합성 검사"""
    report = await runner.run(company_id, roster_path)
    if any(report.counts.values()):
        logger.warning(
            f"정합성 불일치 발견: {company_id} {report.counts}",
            extra={"company_id": company_id},
        )
    return report
