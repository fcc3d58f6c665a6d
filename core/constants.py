"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    # 감가상각 정책 (정액법, 5년)
    USEFUL_LIFE_MONTHS: int = 60

    # 분개 저장
    BATCH_SIZE: int = 100
    RETRY_ATTEMPTS: int = 3
    BATCH_DELAY_SEC: float = 0.005

    # 작업 큐
    WORKER_CONCURRENCY: int = 2
    TASK_MAX_ATTEMPTS: int = 3
    TASK_INITIAL_DELAY_SEC: float = 1.0
    TASK_BACKOFF_FACTOR: float = 2.0

    # 일괄 처분 시 건별 지연
    DISPOSITION_BATCH_DELAY_SEC: float = 0.1

    # 계산기 캐시 크기
    CALCULATOR_CACHE_SIZE: int = 1000

    # 원격 재계산 RPC
    RECOMPUTE_TIMEOUT_SEC: float = 30.0
    MONTHLY_RPC: str = "process_monthly_depreciation"
    CATCH_UP_RPC: str = "catch_up_depreciation_to_date"

    LOG_LEVEL: str = "INFO"


class Tolerances:
    """금액 비교 허용 오차"""

    # 차변/대변 균형 허용 오차
    BALANCE: Decimal = Decimal("0.01")

    # 처분 손익 무시 임계값
    GAIN_LOSS: Decimal = Decimal("0.01")

    # 원 단위 반올림 단위 (센트)
    CURRENCY_QUANT: Decimal = Decimal("0.01")


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = DATA_DIR / "logs"
    WORKER_LOGS_DIR: Path = LOGS_DIR / "worker"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "livestock_ledger.db"
