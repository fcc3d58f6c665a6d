"""요청 스키마 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from core.errors import ValidationError
from core.lifecycle.requests import (
    CatchUpRequest,
    DisposeRequest,
    ReinstateRequest,
    parse_request,
)
from core.types import DispositionType
from core.utils.periods import Period


class TestDisposeRequest:
    """DisposeRequest 테스트"""

    def test_parse_strings(self) -> None:
        request = parse_request(DisposeRequest, {
            "asset_id": "cow-1042",
            "disposition_type": "sale",
            "disposition_date": "2024-06-15",
            "sale_amount": "1800.00",
        })

        assert request.disposition_type == DispositionType.SALE
        assert request.disposition_date == date(2024, 6, 15)
        assert request.sale_amount == Decimal("1800.00")
        assert request.notes is None

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_request(DisposeRequest, {
                "asset_id": "cow-1042",
                "disposition_type": "stolen",
                "disposition_date": "2024-06-15",
            })

        assert exc_info.value.field == "disposition_type"

    def test_negative_sale_amount(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_request(DisposeRequest, {
                "asset_id": "cow-1042",
                "disposition_type": "sale",
                "disposition_date": "2024-06-15",
                "sale_amount": "-1",
            })

        assert exc_info.value.field == "sale_amount"

    def test_empty_asset_id(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_request(DisposeRequest, {
                "asset_id": "",
                "disposition_type": "death",
                "disposition_date": "2024-06-15",
            })

        assert exc_info.value.field == "asset_id"

    def test_invalid_date(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_request(DisposeRequest, {
                "asset_id": "cow-1042",
                "disposition_type": "death",
                "disposition_date": "2024-13-40",
            })

        assert exc_info.value.field == "disposition_date"


class TestReinstateRequest:
    """ReinstateRequest 테스트"""

    def test_default_reason(self) -> None:
        request = parse_request(ReinstateRequest, {"asset_id": "cow-1042"})

        assert request.reason == "Cow reinstated"


class TestCatchUpRequest:
    """CatchUpRequest 테스트"""

    def test_periods(self) -> None:
        request = parse_request(CatchUpRequest, {"company_id": "farm-1", "start": "2024-1", "end": "2024-03"})

        assert request.start == "2024-01"
        assert request.start_period == Period(2024, 1)
        assert request.end_period == Period(2024, 3)

    def test_invalid_period(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_request(CatchUpRequest, {"company_id": "farm-1", "start": "2024/01", "end": "2024-03"})

        assert exc_info.value.field == "start"

    def test_start_after_end(self) -> None:
        with pytest.raises(ValidationError):
            parse_request(CatchUpRequest, {"company_id": "farm-1", "start": "2024-05", "end": "2024-03"})
