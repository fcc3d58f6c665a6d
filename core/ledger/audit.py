"""
원장 점검 / 요약

- summarize_period: 회사의 월별 분개 요약 (유형별 건수, 합계)
- check_integrity: 불균형 분개, 잘못된 라인, 처분 기록 없는 처분 자산 탐지
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from adapters.models import JournalQuery
from core.constants import Tolerances
from core.ledger.balance import sum_lines
from core.types import AssetStatus

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


@dataclass
class EntryTypeSummary:
    """분개 유형별 집계"""

    count: int = 0
    total_amount: Decimal = Decimal("0")
    total_debit: Decimal = Decimal("0")
    total_credit: Decimal = Decimal("0")


@dataclass
class PeriodSummary:
    """월별 분개 요약"""

    company_id: str
    month: int
    year: int
    by_type: dict[str, EntryTypeSummary] = field(default_factory=dict)

    @property
    def entry_count(self) -> int:
        return sum(s.count for s in self.by_type.values())

    @property
    def total_debit(self) -> Decimal:
        return sum((s.total_debit for s in self.by_type.values()), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((s.total_credit for s in self.by_type.values()), Decimal("0"))


@dataclass(frozen=True)
class IntegrityIssue:
    """원장 점검 결과 한 건"""

    kind: str  # unbalanced_entry, invalid_line, missing_disposition
    reference_id: str
    description: str


async def summarize_period(
    store: "ILedgerStore",
    company_id: str,
    month: int,
    year: int,
) -> PeriodSummary:
    """회사의 해당 월 분개 요약"""
    entries = await store.query_journal_entries(JournalQuery(
        company_id=company_id,
        month=month,
        year=year,
    ))

    summary = PeriodSummary(company_id=company_id, month=month, year=year)
    for entry in entries:
        bucket = summary.by_type.setdefault(entry.entry_type.value, EntryTypeSummary())
        debit, credit = sum_lines(entry.lines)
        bucket.count += 1
        bucket.total_amount += entry.total_amount
        bucket.total_debit += debit
        bucket.total_credit += credit

    return summary


async def check_integrity(store: "ILedgerStore", company_id: str) -> list[IntegrityIssue]:
    """회사 원장 점검

    Returns:
        발견된 문제 목록 (없으면 빈 목록)
    """
    issues: list[IntegrityIssue] = []

    entries = await store.query_journal_entries(JournalQuery(company_id=company_id))
    for entry in entries:
        debit, credit = sum_lines(entry.lines)
        if abs(debit - credit) > Tolerances.BALANCE:
            issues.append(IntegrityIssue(
                kind="unbalanced_entry",
                reference_id=entry.entry_id,
                description=f"{entry.description}: debit={debit} credit={credit}",
            ))
        for line in entry.lines:
            if (line.debit_amount == 0) == (line.credit_amount == 0):
                issues.append(IntegrityIssue(
                    kind="invalid_line",
                    reference_id=line.line_id,
                    description=f"{line.account_code} must have exactly one of debit/credit",
                ))

    for asset in await store.list_assets(company_id, AssetStatus.DISPOSED):
        if not await store.list_dispositions(asset.asset_id):
            issues.append(IntegrityIssue(
                kind="missing_disposition",
                reference_id=asset.asset_id,
                description=f"Cow #{asset.tag} is disposed but has no disposition record",
            ))

    if issues:
        logger.warning(
            f"원장 점검: {len(issues)}건 문제 발견 ({company_id})",
            extra={"company_id": company_id, "issue_count": len(issues)},
        )
    return issues
