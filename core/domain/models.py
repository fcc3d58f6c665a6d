"""
도메인 모델

자산(젖소), 처분 기록, 정합성 스테이징 레코드.
저장소 경계에서 행(row)을 이 타입으로 명시적으로 변환함.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

from core.types import (
    AcquisitionType,
    AssetStatus,
    DiscrepancyType,
    DispositionType,
    ResolutionStatus,
)


def clamp_book_value(
    purchase_price: Decimal,
    salvage_value: Decimal,
    accumulated_depreciation: Decimal,
) -> Decimal:
    """장부가 = 취득가 - 감가상각누계액 (잔존가치 이상으로 제한)"""
    return max(salvage_value, purchase_price - accumulated_depreciation)


@dataclass(frozen=True)
class Asset:
    """감가상각 대상 자산 (젖소)

    accumulated_depreciation / current_value는 원장에서 재계산 가능한 스냅샷.
    삭제하지 않고 status로 관리.
    """

    asset_id: str
    company_id: str
    tag: str
    purchase_price: Decimal
    salvage_value: Decimal
    freshen_date: date | None  # 착유 개시일 = 사용 개시일
    birth_date: date | None = None
    acquisition_type: AcquisitionType = AcquisitionType.PURCHASED
    status: AssetStatus = AssetStatus.ACTIVE
    disposition_id: str | None = None
    accumulated_depreciation: Decimal = Decimal("0")
    current_value: Decimal | None = None

    def __post_init__(self) -> None:
        if self.current_value is None:
            object.__setattr__(
                self,
                "current_value",
                clamp_book_value(
                    self.purchase_price,
                    self.salvage_value,
                    self.accumulated_depreciation,
                ),
            )

    @property
    def is_active(self) -> bool:
        """활성 여부"""
        return self.status == AssetStatus.ACTIVE

    @property
    def depreciable_base(self) -> Decimal:
        """감가상각 대상 금액 (취득가 - 잔존가치)"""
        return self.purchase_price - self.salvage_value

    def with_values(self, accumulated_depreciation: Decimal) -> "Asset":
        """감가상각누계액을 반영한 새 스냅샷"""
        return replace(
            self,
            accumulated_depreciation=accumulated_depreciation,
            current_value=clamp_book_value(
                self.purchase_price,
                self.salvage_value,
                accumulated_depreciation,
            ),
        )

    @staticmethod
    def create(
        company_id: str,
        tag: str,
        purchase_price: Decimal,
        salvage_value: Decimal = Decimal("0"),
        freshen_date: date | None = None,
        birth_date: date | None = None,
        acquisition_type: AcquisitionType = AcquisitionType.PURCHASED,
        asset_id: str | None = None,
    ) -> "Asset":
        """새 자산 생성 (status=ACTIVE, 감가상각 없음)"""
        return Asset(
            asset_id=asset_id or str(uuid4()),
            company_id=company_id,
            tag=tag,
            purchase_price=purchase_price,
            salvage_value=salvage_value,
            freshen_date=freshen_date,
            birth_date=birth_date,
            acquisition_type=acquisition_type,
        )


@dataclass(frozen=True)
class Disposition:
    """처분 기록

    gain_loss = sale_amount - final_book_value
    활성(미취소) 처분은 자산당 하나.
    """

    disposition_id: str
    asset_id: str
    company_id: str
    disposition_date: date
    disposition_type: DispositionType
    sale_amount: Decimal
    final_book_value: Decimal
    gain_loss: Decimal
    journal_entry_id: str
    notes: str | None = None


@dataclass(frozen=True)
class RosterEntry:
    """마스터 파일의 한 행 (태그 + 생년월일)"""

    tag: str
    birth_date: str  # YYYY-MM-DD


@dataclass(frozen=True)
class ReconciliationStagingRecord:
    """정합성 검사 불일치 레코드 (사람 검토 대기)"""

    record_id: str
    company_id: str
    discrepancy_type: DiscrepancyType
    tag: str
    birth_date: str | None
    source_file_name: str
    asset_id: str | None = None
    resolution_status: ResolutionStatus = ResolutionStatus.PENDING
    resolution_action: str | None = None
