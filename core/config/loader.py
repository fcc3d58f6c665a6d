"""
설정 로더

settings.yaml 로드 및 구성 요소별 설정 생성.
싱글턴 없이 로드한 Settings를 호출자가 명시적으로 전달함.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


@dataclass(frozen=True)
class DepreciationPolicy:
    """감가상각 정책 (정액법)"""

    useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS


@dataclass(frozen=True)
class PersistenceSettings:
    """분개 저장 설정"""

    batch_size: int = Defaults.BATCH_SIZE
    retry_attempts: int = Defaults.RETRY_ATTEMPTS
    validate_balance: bool = True
    batch_delay_sec: float = Defaults.BATCH_DELAY_SEC


@dataclass(frozen=True)
class DatabaseSettings:
    """원장 DB 설정

    상대 경로는 프로젝트 루트 기준.
    """

    path: Path = Paths.LEDGER_DB


@dataclass(frozen=True)
class RecomputeSettings:
    """감가상각 재계산 백엔드 설정

    backend:
        local: 원장 DB 기반 재계산 (LedgerRecomputeService)
        postgrest: 원격 RPC 호출 (PostgrestRecomputeClient)
    """

    backend: str = "local"
    base_url: str = ""
    api_key: str = ""
    timeout_sec: float = Defaults.RECOMPUTE_TIMEOUT_SEC
    monthly_rpc: str = Defaults.MONTHLY_RPC
    catch_up_rpc: str = Defaults.CATCH_UP_RPC


@dataclass(frozen=True)
class WorkerSettings:
    """작업 큐 설정"""

    concurrency: int = Defaults.WORKER_CONCURRENCY
    max_attempts: int = Defaults.TASK_MAX_ATTEMPTS
    initial_delay_sec: float = Defaults.TASK_INITIAL_DELAY_SEC
    backoff_factor: float = Defaults.TASK_BACKOFF_FACTOR


@dataclass(frozen=True)
class Settings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    depreciation: DepreciationPolicy = field(default_factory=DepreciationPolicy)
    persistence: PersistenceSettings = field(default_factory=PersistenceSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    recompute: RecomputeSettings = field(default_factory=RecomputeSettings)
    worker: WorkerSettings = field(default_factory=WorkerSettings)
    log_level: str = Defaults.LOG_LEVEL


RECOMPUTE_BACKENDS = ("local", "postgrest")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return section


def _positive_int(section: dict[str, Any], key: str, default: int, prefix: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SettingsLoadError(f"'{prefix}.{key}'는 양의 정수여야 합니다: {value!r}")
    return value


def _non_negative_float(section: dict[str, Any], key: str, default: float, prefix: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise SettingsLoadError(f"'{prefix}.{key}'는 0 이상의 숫자여야 합니다: {value!r}")
    return float(value)


def _bool(section: dict[str, Any], key: str, default: bool, prefix: str) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise SettingsLoadError(f"'{prefix}.{key}'는 true/false여야 합니다: {value!r}")
    return value


def _parse_recompute(section: dict[str, Any]) -> RecomputeSettings:
    backend = section.get("backend", "local")
    if backend not in RECOMPUTE_BACKENDS:
        raise SettingsLoadError(
            f"유효하지 않은 'recompute.backend'입니다: '{backend}'. "
            f"유효한 값: {list(RECOMPUTE_BACKENDS)}"
        )

    base_url = str(section.get("base_url") or "").rstrip("/")
    api_key = str(section.get("api_key") or "")
    if backend == "postgrest":
        if not base_url:
            raise SettingsLoadError("postgrest 백엔드에는 'recompute.base_url'이 필요합니다")
        if not api_key:
            raise SettingsLoadError("postgrest 백엔드에는 'recompute.api_key'가 필요합니다")

    timeout = _non_negative_float(section, "timeout_sec", Defaults.RECOMPUTE_TIMEOUT_SEC, "recompute")
    if timeout == 0:
        raise SettingsLoadError("'recompute.timeout_sec'는 0보다 커야 합니다")

    return RecomputeSettings(
        backend=backend,
        base_url=base_url,
        api_key=api_key,
        timeout_sec=timeout,
        monthly_rpc=str(section.get("monthly_rpc", Defaults.MONTHLY_RPC)),
        catch_up_rpc=str(section.get("catch_up_rpc", Defaults.CATCH_UP_RPC)),
    )


def load_settings(path: Path | None = None) -> Settings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식/값이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    depreciation = _section(data, "depreciation")
    persistence = _section(data, "persistence")
    database = _section(data, "database")
    worker = _section(data, "worker")

    db_path = Path(database.get("path", Paths.LEDGER_DB))
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path

    log_level = str(data.get("log_level", Defaults.LOG_LEVEL)).upper()
    if log_level not in LOG_LEVELS:
        raise SettingsLoadError(
            f"유효하지 않은 'log_level'입니다: '{log_level}'. 유효한 값: {list(LOG_LEVELS)}"
        )

    return Settings(
        depreciation=DepreciationPolicy(
            useful_life_months=_positive_int(
                depreciation, "useful_life_months", Defaults.USEFUL_LIFE_MONTHS, "depreciation"
            ),
        ),
        persistence=PersistenceSettings(
            batch_size=_positive_int(persistence, "batch_size", Defaults.BATCH_SIZE, "persistence"),
            retry_attempts=_positive_int(
                persistence, "retry_attempts", Defaults.RETRY_ATTEMPTS, "persistence"
            ),
            validate_balance=_bool(persistence, "validate_balance", True, "persistence"),
            batch_delay_sec=_non_negative_float(
                persistence, "batch_delay_sec", Defaults.BATCH_DELAY_SEC, "persistence"
            ),
        ),
        database=DatabaseSettings(path=db_path),
        recompute=_parse_recompute(_section(data, "recompute")),
        worker=WorkerSettings(
            concurrency=_positive_int(worker, "concurrency", Defaults.WORKER_CONCURRENCY, "worker"),
            max_attempts=_positive_int(worker, "max_attempts", Defaults.TASK_MAX_ATTEMPTS, "worker"),
            initial_delay_sec=_non_negative_float(
                worker, "initial_delay_sec", Defaults.TASK_INITIAL_DELAY_SEC, "worker"
            ),
            backoff_factor=_non_negative_float(
                worker, "backoff_factor", Defaults.TASK_BACKOFF_FACTOR, "worker"
            ),
        ),
        log_level=log_level,
    )
