"""
core/utils/periods.py 테스트

회계 기간 계산 (월 경계, 연도 넘김, 윤년)
"""

from datetime import date

import pytest

from core.utils.periods import (
    Period,
    iter_periods,
    month_end,
    months_between,
    previous_completed_period,
)


class TestPeriod:
    """Period 테스트"""

    def test_label(self) -> None:
        assert Period(2024, 3).label == "2024-03"

    def test_start_and_end(self) -> None:
        period = Period(2024, 2)
        assert period.start == date(2024, 2, 1)
        assert period.end == date(2024, 2, 29)

    def test_next_wraps_year(self) -> None:
        assert Period(2024, 12).next() == Period(2025, 1)
        assert Period(2024, 5).next() == Period(2024, 6)

    def test_previous_wraps_year(self) -> None:
        assert Period(2025, 1).previous() == Period(2024, 12)

    def test_of(self) -> None:
        assert Period.of(date(2024, 6, 15)) == Period(2024, 6)

    def test_ordering(self) -> None:
        """NamedTuple 비교로 시간 순 정렬"""
        assert Period(2023, 12) < Period(2024, 1)
        assert sorted([Period(2024, 3), Period(2023, 11)]) == [Period(2023, 11), Period(2024, 3)]

    def test_parse(self) -> None:
        assert Period.parse(" 2024-03 ") == Period(2024, 3)
        assert Period.parse("2024-3") == Period(2024, 3)

    @pytest.mark.parametrize("value", ["2024", "2024-13", "2024-00", "abc-def", "2024-01-01"])
    def test_parse_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            Period.parse(value)


class TestMonthsBetween:
    """months_between 테스트"""

    @pytest.mark.parametrize(
        "start,end,expected",
        [
            (date(2024, 1, 15), date(2025, 1, 10), 12),
            (date(2024, 1, 31), date(2024, 2, 1), 1),
            (date(2024, 1, 1), date(2024, 1, 31), 0),
            (date(2024, 6, 1), date(2024, 1, 1), 0),
        ],
    )
    def test_calendar_months(self, start: date, end: date, expected: int) -> None:
        assert months_between(start, end) == expected


class TestIterPeriods:
    """iter_periods 테스트"""

    def test_inclusive(self) -> None:
        periods = list(iter_periods(Period(2024, 11), Period(2025, 2)))
        assert [p.label for p in periods] == ["2024-11", "2024-12", "2025-01", "2025-02"]

    def test_single(self) -> None:
        assert list(iter_periods(Period(2024, 3), Period(2024, 3))) == [Period(2024, 3)]

    def test_empty_when_reversed(self) -> None:
        assert list(iter_periods(Period(2024, 3), Period(2024, 2))) == []


def test_month_end_leap_year() -> None:
    assert month_end(2023, 2) == date(2023, 2, 28)
    assert month_end(2024, 2) == date(2024, 2, 29)


def test_previous_completed_period() -> None:
    assert previous_completed_period(date(2024, 9, 10)) == Period(2024, 8)
    assert previous_completed_period(date(2025, 1, 1)) == Period(2024, 12)
