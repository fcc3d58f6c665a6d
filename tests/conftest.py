"""
pytest 공통 fixture 정의

원장 엔진 테스트용 fixture (메모리 저장소, 샘플 자산, 설정 파일)
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.mock.ledger_store import InMemoryLedgerStore
from core.depreciation.calculator import DepreciationCalculator
from core.domain.models import Asset
from core.ledger.entry_builder import JournalEntryBuilder
from core.ledger.persistence import JournalPersistenceCoordinator, PersistenceOptions
from core.ledger.recompute import LedgerRecomputeService
from core.types import AcquisitionType

COMPANY_ID = "farm-1"


class SleepRecorder:
    """asyncio.sleep 대체 (대기 시간만 기록)"""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = """# 테스트용 settings.yaml
log_level: debug

depreciation:
  useful_life_months: 48

persistence:
  batch_size: 25
  retry_attempts: 5
  validate_balance: true
  batch_delay_sec: 0

database:
  path: ledger.db

recompute:
  backend: local

worker:
  concurrency: 1
  max_attempts: 2
  initial_delay_sec: 0.5
  backoff_factor: 3
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def fake_sleep() -> SleepRecorder:
    """대기 없이 지연 시간만 기록하는 sleep"""
    return SleepRecorder()


@pytest.fixture
def calculator() -> DepreciationCalculator:
    """60개월 정액법 계산기"""
    return DepreciationCalculator(useful_life_months=60)


@pytest.fixture
def builder(calculator: DepreciationCalculator) -> JournalEntryBuilder:
    return JournalEntryBuilder(calculator)


@pytest.fixture
def purchased_cow() -> Asset:
    """구매 젖소 (P=2500, S=250, 2024-01-15 착유 개시)"""
    return Asset.create(
        company_id=COMPANY_ID,
        tag="1042",
        purchase_price=Decimal("2500"),
        salvage_value=Decimal("250"),
        freshen_date=date(2024, 1, 15),
        birth_date=date(2021, 3, 2),
        acquisition_type=AcquisitionType.PURCHASED,
        asset_id="cow-1042",
    )


@pytest.fixture
def raised_cow() -> Asset:
    """자체 육성 젖소 (P=1800, S=0)"""
    return Asset.create(
        company_id=COMPANY_ID,
        tag="2001",
        purchase_price=Decimal("1800"),
        salvage_value=Decimal("0"),
        freshen_date=date(2024, 2, 1),
        birth_date=date(2021, 6, 10),
        acquisition_type=AcquisitionType.RAISED,
        asset_id="cow-2001",
    )


@pytest.fixture
def store() -> InMemoryLedgerStore:
    """메모리 원장 저장소"""
    return InMemoryLedgerStore()


@pytest.fixture
def coordinator(
    store: InMemoryLedgerStore,
    fake_sleep: SleepRecorder,
) -> JournalPersistenceCoordinator:
    """배치 지연 없는 저장 코디네이터"""
    return JournalPersistenceCoordinator(
        store,
        PersistenceOptions(batch_delay_sec=0),
        sleep=fake_sleep,
    )


@pytest.fixture
def recompute(
    store: InMemoryLedgerStore,
    coordinator: JournalPersistenceCoordinator,
    builder: JournalEntryBuilder,
    calculator: DepreciationCalculator,
) -> LedgerRecomputeService:
    """메모리 저장소 기반 재계산 서비스"""
    return LedgerRecomputeService(store, coordinator, builder=builder, calculator=calculator)
