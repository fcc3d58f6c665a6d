"""
유틸리티 패키지

회계 기간 계산, dedup_key 생성 등 공통 유틸리티
"""

from core.utils.dedup import (
    make_period_entry_key,
    make_staging_record_id,
)
from core.utils.periods import (
    Period,
    iter_periods,
    month_end,
    months_between,
    previous_completed_period,
)

__all__ = [
    "Period",
    "iter_periods",
    "month_end",
    "months_between",
    "previous_completed_period",
    "make_period_entry_key",
    "make_staging_record_id",
]
