"""
어댑터 공통 데이터 모델

저장소 조회 조건과 외부 재계산 결과를 표준화한 모델.
모든 금액은 Decimal 타입 사용.
"""

from dataclasses import dataclass
from decimal import Decimal

from core.ledger.types import EntryType


@dataclass(frozen=True)
class JournalQuery:
    """분개/분개 라인 조회 조건

    None인 필드는 조건에서 제외.

    Attributes:
        asset_id: 라인이 참조하는 자산
        company_id: 회사
        entry_type: 분개 유형
        month: 회계 월
        year: 회계 연도
        account_code: 계정 코드 (라인 조회 시)
    """

    asset_id: str | None = None
    company_id: str | None = None
    entry_type: EntryType | None = None
    month: int | None = None
    year: int | None = None
    account_code: str | None = None


@dataclass(frozen=True)
class RecomputeResult:
    """재계산 계약 호출 결과

    Attributes:
        success: 성공 여부
        processed_amount: 이번 호출로 게시된 감가상각 합계
        entries_created: 생성된 분개 수 (이미 처리된 기간이면 0)
        assets_processed: 라인이 생성된 자산 수
        error: 실패 사유
    """

    success: bool
    processed_amount: Decimal = Decimal("0")
    entries_created: int = 0
    assets_processed: int = 0
    error: str | None = None

    @property
    def is_noop(self) -> bool:
        """이미 처리되어 아무것도 게시하지 않음"""
        return self.success and self.entries_created == 0
