"""어댑터 공통 모델 테스트"""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from adapters.models import JournalQuery, RecomputeResult
from core.ledger.types import EntryType


class TestJournalQuery:
    """JournalQuery 테스트"""

    def test_defaults_match_everything(self) -> None:
        query = JournalQuery()

        assert query.asset_id is None
        assert query.company_id is None
        assert query.entry_type is None
        assert query.month is None
        assert query.year is None
        assert query.account_code is None

    def test_frozen(self) -> None:
        query = JournalQuery(company_id="farm-1", entry_type=EntryType.DEPRECIATION)

        with pytest.raises(FrozenInstanceError):
            query.month = 3  # type: ignore[misc]


class TestRecomputeResult:
    """RecomputeResult 테스트"""

    def test_defaults(self) -> None:
        result = RecomputeResult(success=True)

        assert result.processed_amount == Decimal("0")
        assert result.entries_created == 0
        assert result.error is None

    def test_is_noop(self) -> None:
        assert RecomputeResult(success=True).is_noop
        assert not RecomputeResult(success=True, entries_created=1).is_noop
        assert not RecomputeResult(success=False, error="boom").is_noop
