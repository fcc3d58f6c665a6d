"""
감가상각 계산기

정액법(straight-line) 월 단위 감가상각.
- 월 감가상각비 = (취득가 - 잔존가치) / 내용연수(월)
- 경과 개월 수는 달력 월 경계 기준 (부분 월은 일할하지 않음)
- 누계액은 (취득가 - 잔존가치)를 넘지 않음
- 장부가는 잔존가치 아래로 내려가지 않음

순수 함수이므로 (P, S, d0, d1, L) 단위로 메모이즈 가능.
"""

import functools
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from core.constants import Defaults, Tolerances
from core.errors import ValidationError
from core.utils.periods import Period, months_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepreciationResult:
    """특정 시점의 감가상각 계산 결과"""

    monthly_depreciation: Decimal
    months_elapsed: int
    accumulated_depreciation: Decimal
    book_value: Decimal


@dataclass(frozen=True)
class ScheduleRow:
    """감가상각 스케줄의 한 달"""

    period: Period
    monthly_depreciation: Decimal
    accumulated_depreciation: Decimal
    book_value: Decimal


def round_currency(value: Decimal) -> Decimal:
    """센트 단위 반올림 (ROUND_HALF_UP)"""
    return value.quantize(Tolerances.CURRENCY_QUANT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str) -> Decimal:
    """금액 입력을 Decimal로 변환 (float는 문자열 경유)"""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except ArithmeticError as e:
        raise ValidationError(f"{field} is not a valid amount: {value!r}", field=field) from e


def validate_inputs(
    purchase_price: Decimal,
    salvage_value: Decimal,
    useful_life_months: int,
) -> None:
    """계산 입력 검증

    Raises:
        ValidationError: 취득가 <= 0, 잔존가치 < 0, 잔존가치 > 취득가, 내용연수 <= 0
    """
    if purchase_price <= 0:
        raise ValidationError(
            f"purchase_price must be positive: {purchase_price}", field="purchase_price"
        )
    if salvage_value < 0:
        raise ValidationError(
            f"salvage_value cannot be negative: {salvage_value}", field="salvage_value"
        )
    if salvage_value > purchase_price:
        raise ValidationError(
            f"salvage_value ({salvage_value}) exceeds purchase_price ({purchase_price})",
            field="salvage_value",
        )
    if useful_life_months <= 0:
        raise ValidationError(
            f"useful_life_months must be positive: {useful_life_months}",
            field="useful_life_months",
        )


def calculate_depreciation(
    purchase_price: Decimal,
    salvage_value: Decimal,
    in_service_date: date,
    as_of: date,
    useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS,
) -> DepreciationResult:
    """as_of 시점의 월 감가상각비, 누계액, 장부가 계산

    Args:
        purchase_price: 취득가
        salvage_value: 잔존가치
        in_service_date: 사용 개시일 (착유 개시일)
        as_of: 기준일
        useful_life_months: 내용연수 (월)

    Returns:
        DepreciationResult

    Raises:
        ValidationError: 입력값이 잘못된 경우
    """
    purchase_price = to_decimal(purchase_price, "purchase_price")
    salvage_value = to_decimal(salvage_value, "salvage_value")
    validate_inputs(purchase_price, salvage_value, useful_life_months)

    depreciable_base = purchase_price - salvage_value
    monthly = depreciable_base / Decimal(useful_life_months)
    months = months_between(in_service_date, as_of)

    accumulated = round_currency(min(monthly * months, depreciable_base))
    book_value = max(salvage_value, purchase_price - accumulated)

    return DepreciationResult(
        monthly_depreciation=round_currency(monthly),
        months_elapsed=months,
        accumulated_depreciation=accumulated,
        book_value=book_value,
    )


def generate_schedule(
    purchase_price: Decimal,
    salvage_value: Decimal,
    in_service_date: date,
    useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS,
) -> list[ScheduleRow]:
    """내용연수 전체의 월별 감가상각 스케줄

    사용 개시 월부터 시작. 마지막 달이 반올림 차이를 흡수하여
    누계액이 정확히 (취득가 - 잔존가치)로 끝남.
    """
    purchase_price = to_decimal(purchase_price, "purchase_price")
    salvage_value = to_decimal(salvage_value, "salvage_value")
    validate_inputs(purchase_price, salvage_value, useful_life_months)

    depreciable_base = purchase_price - salvage_value
    monthly = round_currency(depreciable_base / Decimal(useful_life_months))

    rows: list[ScheduleRow] = []
    accumulated = Decimal("0")
    period = Period.of(in_service_date)

    for month_index in range(useful_life_months):
        is_last = month_index == useful_life_months - 1
        amount = depreciable_base - accumulated if is_last else min(monthly, depreciable_base - accumulated)
        accumulated += amount
        rows.append(ScheduleRow(
            period=period,
            monthly_depreciation=amount,
            accumulated_depreciation=accumulated,
            book_value=purchase_price - accumulated,
        ))
        period = period.next()

    return rows


class DepreciationCalculator:
    """감가상각 계산기 (LRU 캐시)

    내용연수 정책을 고정하고 (P, S, d0, d1, L) 단위로 결과를 캐시.

    Args:
        useful_life_months: 내용연수 (월)
        cache_size: LRU 캐시 최대 항목 수

    사용 예시:
    ```python
    calculator = DepreciationCalculator(useful_life_months=60)
    result = calculator.calculate(Decimal("2500"), Decimal("250"), freshen, today)
    result.book_value
    ```
    """

    def __init__(
        self,
        useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS,
        cache_size: int = Defaults.CALCULATOR_CACHE_SIZE,
    ):
        if useful_life_months <= 0:
            raise ValidationError(
                f"useful_life_months must be positive: {useful_life_months}",
                field="useful_life_months",
            )
        self.useful_life_months = useful_life_months
        self._cached = functools.lru_cache(maxsize=cache_size)(calculate_depreciation)

    def calculate(
        self,
        purchase_price: Decimal,
        salvage_value: Decimal,
        in_service_date: date,
        as_of: date,
    ) -> DepreciationResult:
        """as_of 시점 계산 (캐시 사용)"""
        return self._cached(
            to_decimal(purchase_price, "purchase_price"),
            to_decimal(salvage_value, "salvage_value"),
            in_service_date,
            as_of,
            self.useful_life_months,
        )

    def monthly_amount(self, purchase_price: Decimal, salvage_value: Decimal) -> Decimal:
        """월 감가상각비 (센트 단위)"""
        purchase_price = to_decimal(purchase_price, "purchase_price")
        salvage_value = to_decimal(salvage_value, "salvage_value")
        validate_inputs(purchase_price, salvage_value, self.useful_life_months)
        return round_currency((purchase_price - salvage_value) / Decimal(self.useful_life_months))

    def schedule(
        self,
        purchase_price: Decimal,
        salvage_value: Decimal,
        in_service_date: date,
    ) -> list[ScheduleRow]:
        """월별 스케줄"""
        return generate_schedule(
            purchase_price, salvage_value, in_service_date, self.useful_life_months
        )

    def cache_info(self) -> Any:
        """functools 캐시 통계 (hits, misses, maxsize, currsize)"""
        return self._cached.cache_info()

    def clear_cache(self) -> None:
        """캐시 초기화"""
        self._cached.cache_clear()
