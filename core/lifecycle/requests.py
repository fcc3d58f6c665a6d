"""
요청 스키마 (Pydantic)

CLI/외부 입력을 생애주기 관리자에 넘기기 전에 검증.
pydantic 검증 오류는 경계에서 core.errors.ValidationError로 변환.
"""

from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, Field, field_validator, model_validator

from core.errors import ValidationError
from core.types import DispositionType
from core.utils.periods import Period

ModelT = TypeVar("ModelT", bound=BaseModel)


class DisposeRequest(BaseModel):
    """처분 요청"""

    asset_id: str = Field(..., min_length=1, description="자산 ID")
    disposition_type: DispositionType = Field(..., description="처분 유형 (sale, death, culled)")
    disposition_date: date = Field(..., description="처분일")
    sale_amount: Decimal = Field(default=Decimal("0"), ge=0, description="매각대금")
    notes: str | None = Field(default=None, description="메모")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "asset_id": "cow-1042",
                    "disposition_type": "sale",
                    "disposition_date": "2024-06-15",
                    "sale_amount": "1800.00",
                },
            ]
        }
    }


class ReinstateRequest(BaseModel):
    """처분 취소(복원) 요청"""

    asset_id: str = Field(..., min_length=1, description="자산 ID")
    reason: str = Field(default="Cow reinstated", description="취소 사유")


class CatchUpRequest(BaseModel):
    """기간 범위 월 감가상각 요청"""

    company_id: str = Field(..., min_length=1, description="회사 ID")
    start: str = Field(..., description="시작 기간 (YYYY-MM)")
    end: str = Field(..., description="종료 기간 (YYYY-MM, 포함)")

    @field_validator("start", "end")
    @classmethod
    def _check_period(cls, value: str) -> str:
        return Period.parse(value).label

    @model_validator(mode="after")
    def _check_order(self) -> "CatchUpRequest":
        if Period.parse(self.start) > Period.parse(self.end):
            raise ValueError(f"start {self.start} is after end {self.end}")
        return self

    @property
    def start_period(self) -> Period:
        return Period.parse(self.start)

    @property
    def end_period(self) -> Period:
        return Period.parse(self.end)


def parse_request(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """요청 검증

    Raises:
        ValidationError: pydantic 검증 실패 (첫 번째 오류 필드 포함)
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        errors = e.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors and errors[0]["loc"] else None
        raise ValidationError(f"Invalid {model.__name__}: {e}", field=field) from e
