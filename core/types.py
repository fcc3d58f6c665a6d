"""
타입 정의 모듈

자산 생애주기, 처분, 정합성 검사에서 사용하는 Enum 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AssetStatus(str, Enum):
    """자산(젖소) 상태"""

    ACTIVE = "active"
    DISPOSED = "disposed"


class AcquisitionType(str, Enum):
    """취득 유형"""

    PURCHASED = "purchased"  # 구매 → 현금 대변
    RAISED = "raised"  # 자체 육성 → 자본(투자) 대변


class DispositionType(str, Enum):
    """처분 유형"""

    SALE = "sale"
    DEATH = "death"
    CULLED = "culled"


class DiscrepancyType(str, Enum):
    """정합성 검사 불일치 유형"""

    MISSING_FROM_DATABASE = "missing_from_database"  # 마스터에는 있고 내부에는 없음
    NEEDS_DISPOSAL = "needs_disposal"  # 내부에는 활성, 마스터에는 없음
    MISSING_FRESHEN_DATE = "missing_freshen_date"  # 착유 개시일 누락


class ResolutionStatus(str, Enum):
    """스테이징 레코드 처리 상태"""

    PENDING = "pending"
    RESOLVED = "resolved"
