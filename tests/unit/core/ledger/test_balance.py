"""분개 균형 검증 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from core.errors import BalanceMismatchError, ValidationError
from core.ledger.balance import check_line_shape, is_balanced, sum_lines, validate_balance
from core.ledger.entry_builder import JournalEntry, JournalLine
from core.ledger.types import AccountCodes, EntryType, LineType


def _line(line_id: str, account: str, debit: str, credit: str) -> JournalLine:
    return JournalLine(
        line_id=line_id,
        entry_id="entry-1",
        account_code=account,
        account_name="test",
        description="test line",
        debit_amount=Decimal(debit),
        credit_amount=Decimal(credit),
        line_type=LineType.DEBIT if Decimal(debit) > 0 else LineType.CREDIT,
    )


def _entry(*lines: JournalLine) -> JournalEntry:
    return JournalEntry(
        entry_id="entry-1",
        company_id="farm-1",
        entry_date=date(2024, 1, 31),
        month=1,
        year=2024,
        entry_type=EntryType.DEPRECIATION,
        description="test",
        total_amount=Decimal("100"),
        lines=tuple(lines),
    )


class TestSumLines:
    """sum_lines / is_balanced 테스트"""

    def test_sum(self) -> None:
        lines = [
            _line("l1", AccountCodes.DEPRECIATION_EXPENSE, "60", "0"),
            _line("l2", AccountCodes.DEPRECIATION_EXPENSE, "40", "0"),
            _line("l3", AccountCodes.ACCUMULATED_DEPRECIATION, "0", "100"),
        ]

        assert sum_lines(lines) == (Decimal("100"), Decimal("100"))
        assert is_balanced(lines)

    def test_within_tolerance(self) -> None:
        """0.01 이내 차이는 균형"""
        lines = [
            _line("l1", AccountCodes.DEPRECIATION_EXPENSE, "100.01", "0"),
            _line("l2", AccountCodes.ACCUMULATED_DEPRECIATION, "0", "100"),
        ]

        assert is_balanced(lines)

    def test_outside_tolerance(self) -> None:
        lines = [
            _line("l1", AccountCodes.DEPRECIATION_EXPENSE, "100.02", "0"),
            _line("l2", AccountCodes.ACCUMULATED_DEPRECIATION, "0", "100"),
        ]

        assert not is_balanced(lines)

    def test_empty(self) -> None:
        assert sum_lines([]) == (Decimal("0"), Decimal("0"))


class TestCheckLineShape:
    """라인 형태 검증 테스트"""

    def test_valid_debit(self) -> None:
        check_line_shape(_line("l1", AccountCodes.CASH, "10", "0"))

    def test_both_sides_rejected(self) -> None:
        with pytest.raises(ValidationError):
            check_line_shape(_line("l1", AccountCodes.CASH, "10", "10"))

    def test_zero_line_rejected(self) -> None:
        with pytest.raises(ValidationError):
            check_line_shape(_line("l1", AccountCodes.CASH, "0", "0"))

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            check_line_shape(_line("l1", AccountCodes.CASH, "-5", "0"))

        assert exc_info.value.field == "amount"


class TestValidateBalance:
    """validate_balance 테스트"""

    def test_returns_entry(self) -> None:
        entry = _entry(
            _line("l1", AccountCodes.DEPRECIATION_EXPENSE, "100", "0"),
            _line("l2", AccountCodes.ACCUMULATED_DEPRECIATION, "0", "100"),
        )

        assert validate_balance(entry) is entry

    def test_unbalanced(self) -> None:
        entry = _entry(
            _line("l1", AccountCodes.DEPRECIATION_EXPENSE, "100", "0"),
            _line("l2", AccountCodes.ACCUMULATED_DEPRECIATION, "0", "90"),
        )

        with pytest.raises(BalanceMismatchError) as exc_info:
            validate_balance(entry)

        error = exc_info.value
        assert error.total_debit == Decimal("100")
        assert error.total_credit == Decimal("90")
        assert error.entry_id == "entry-1"
        assert isinstance(error, ValidationError)

    def test_no_lines(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_balance(_entry())

        assert exc_info.value.field == "lines"
