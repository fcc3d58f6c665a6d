"""
회계 기간(월) 유틸리티

감가상각은 월 단위로 게시되므로 기간 계산을 한 곳에 모음.
일할 계산은 하지 않음 (부분 월은 버림).
"""

import calendar
from datetime import date
from typing import Iterator, NamedTuple


class Period(NamedTuple):
    """회계 기간 (연, 월)"""

    year: int
    month: int

    @property
    def label(self) -> str:
        """YYYY-MM 형식 문자열"""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def start(self) -> date:
        """기간 첫날"""
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        """기간 말일"""
        return month_end(self.year, self.month)

    def next(self) -> "Period":
        """다음 기간"""
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    def previous(self) -> "Period":
        """이전 기간"""
        if self.month == 1:
            return Period(self.year - 1, 12)
        return Period(self.year, self.month - 1)

    @classmethod
    def of(cls, d: date) -> "Period":
        """날짜가 속한 기간"""
        return cls(d.year, d.month)

    @classmethod
    def parse(cls, value: str) -> "Period":
        """YYYY-MM 문자열 파싱

        Raises:
            ValueError: 형식이 잘못된 경우
        """
        try:
            year_str, month_str = value.strip().split("-")
            period = cls(int(year_str), int(month_str))
        except ValueError as e:
            raise ValueError(f"Invalid period (expected YYYY-MM): {value!r}") from e
        if not 1 <= period.month <= 12:
            raise ValueError(f"Invalid month in period: {value!r}")
        return period


def months_between(start: date, end: date) -> int:
    """두 날짜 사이의 경과 개월 수 (달력 월 경계 기준, 0 이상)

    Example:
        >>> months_between(date(2024, 1, 15), date(2025, 1, 10))
        12
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    return max(0, months)


def month_end(year: int, month: int) -> date:
    """해당 월의 말일"""
    return date(year, month, calendar.monthrange(year, month)[1])


def iter_periods(start: Period, end: Period) -> Iterator[Period]:
    """start부터 end까지 (양 끝 포함) 기간 순회

    start가 end보다 뒤면 아무것도 반환하지 않음.
    """
    current = start
    while current <= end:
        yield current
        current = current.next()


def previous_completed_period(today: date) -> Period:
    """오늘 기준 직전 마감 월"""
    return Period.of(today).previous()
