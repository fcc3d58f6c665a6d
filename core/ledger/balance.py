"""
분개 균형 검증

모든 분개는 차변 합계 = 대변 합계 (허용 오차 0.01 이내).
라인은 차변/대변 중 정확히 하나만 0이 아니어야 함.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from core.constants import Tolerances
from core.errors import BalanceMismatchError, ValidationError

if TYPE_CHECKING:
    from core.ledger.entry_builder import JournalEntry, JournalLine


def sum_lines(lines: Iterable["JournalLine"]) -> tuple[Decimal, Decimal]:
    """(차변 합계, 대변 합계)"""
    total_debit = Decimal("0")
    total_credit = Decimal("0")
    for line in lines:
        total_debit += line.debit_amount
        total_credit += line.credit_amount
    return total_debit, total_credit


def is_balanced(lines: Iterable["JournalLine"]) -> bool:
    """균형 여부 (허용 오차 이내)"""
    total_debit, total_credit = sum_lines(lines)
    return abs(total_debit - total_credit) <= Tolerances.BALANCE


def check_line_shape(line: "JournalLine") -> None:
    """라인 형태 검증

    Raises:
        ValidationError: 음수 금액이거나 차변/대변이 모두 0 또는 모두 0이 아닌 경우
    """
    if line.debit_amount < 0 or line.credit_amount < 0:
        raise ValidationError(
            f"Negative amount on line {line.line_id} ({line.account_code})",
            field="amount",
        )
    if (line.debit_amount == 0) == (line.credit_amount == 0):
        raise ValidationError(
            f"Line {line.line_id} ({line.account_code}) must have exactly one of debit/credit",
            field="amount",
        )


def validate_balance(entry: "JournalEntry") -> "JournalEntry":
    """분개 균형 검증

    Args:
        entry: 검증할 분개

    Returns:
        검증을 통과한 동일 분개

    Raises:
        ValidationError: 라인이 없거나 라인 형태가 잘못된 경우
        BalanceMismatchError: |차변 - 대변| > 0.01
    """
    if not entry.lines:
        raise ValidationError(f"Entry {entry.entry_id} has no lines", field="lines")

    for line in entry.lines:
        check_line_shape(line)

    total_debit, total_credit = sum_lines(entry.lines)
    if abs(total_debit - total_credit) > Tolerances.BALANCE:
        raise BalanceMismatchError(total_debit, total_credit, entry.entry_id)

    return entry
