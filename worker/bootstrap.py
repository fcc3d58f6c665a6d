"""
Worker Bootstrap

설정 로드, 의존성 주입, CLI 명령 실행.
각 명령은 TaskQueue에 작업으로 등록되고 완료까지 대기함.

명령:
    init-db     원장 스키마 생성
    reconcile   로스터 파일 정합성 검사
    catch-up    기간 범위 월 감가상각
    dispose     자산 처분
    reinstate   처분 취소
    summary     월 분개 요약 + 원장 점검
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any, Sequence

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IRecomputeService
from adapters.postgrest.recompute_client import PostgrestRecomputeClient
from core.config.loader import Settings, SettingsLoadError, load_settings
from core.constants import Paths
from core.depreciation.calculator import DepreciationCalculator
from core.domain.state_machines import StateMachineError
from core.errors import JournalEngineError, ValidationError
from core.ledger.audit import check_integrity, summarize_period
from core.ledger.entry_builder import JournalEntryBuilder
from core.ledger.persistence import JournalPersistenceCoordinator, PersistenceOptions
from core.ledger.recompute import LedgerRecomputeService
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from core.lifecycle.manager import AssetLifecycleManager
from core.lifecycle.requests import (
    CatchUpRequest,
    DisposeRequest,
    ReinstateRequest,
    parse_request,
)
from core.logging import setup_logging
from core.reconciliation.differ import ReconciliationRunner
from core.utils.periods import Period
from worker.jobs import run_monthly_catch_up, run_reconciliation
from worker.task_queue import RetryPolicy, TaskQueue

logger = logging.getLogger("worker")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


class LedgerEngine:
    """원장 엔진 구성 요소 묶음

    설정에서 계산기/분개 생성기/저장 코디네이터/재계산 서비스/생애주기 관리자를 생성.

    Args:
        settings: 설정 객체
        db: SQLite 어댑터 (연결된 상태)
    """

    def __init__(self, settings: Settings, db: SQLiteAdapter):
        self.settings = settings
        self.db = db

        self.store = LedgerStore(db)
        self.calculator = DepreciationCalculator(settings.depreciation.useful_life_months)
        self.builder = JournalEntryBuilder(self.calculator)
        self.coordinator = JournalPersistenceCoordinator(
            self.store,
            PersistenceOptions(
                batch_size=settings.persistence.batch_size,
                retry_attempts=settings.persistence.retry_attempts,
                validate_balance=settings.persistence.validate_balance,
                batch_delay_sec=settings.persistence.batch_delay_sec,
            ),
        )

        self._remote: PostgrestRecomputeClient | None = None
        self.recompute = self._create_recompute()

        self.manager = AssetLifecycleManager(
            self.store,
            self.recompute,
            self.coordinator,
            builder=self.builder,
        )
        self.runner = ReconciliationRunner(self.store)

    def _create_recompute(self) -> IRecomputeService:
        """재계산 백엔드 생성"""
        config = self.settings.recompute
        if config.backend == "postgrest":
            self._remote = PostgrestRecomputeClient(
                base_url=config.base_url,
                api_key=config.api_key,
                timeout=config.timeout_sec,
                monthly_rpc=config.monthly_rpc,
                catch_up_rpc=config.catch_up_rpc,
            )
            logger.info(f"재계산 백엔드: postgrest ({config.base_url})")
            return self._remote

        logger.info("재계산 백엔드: local")
        return LedgerRecomputeService(
            self.store,
            self.coordinator,
            builder=self.builder,
            calculator=self.calculator,
        )

    def create_queue(self) -> TaskQueue:
        worker = self.settings.worker
        return TaskQueue(
            concurrency=worker.concurrency,
            default_policy=RetryPolicy(
                max_attempts=worker.max_attempts,
                initial_delay=worker.initial_delay_sec,
                backoff_factor=worker.backoff_factor,
            ),
        )

    async def close(self) -> None:
        if self._remote is not None:
            await self._remote.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m worker", description="Livestock ledger worker")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--db", type=Path, default=None, help="원장 DB 경로 (설정보다 우선)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="원장 스키마 생성")

    reconcile = sub.add_parser("reconcile", help="로스터 파일 정합성 검사")
    reconcile.add_argument("--company", required=True)
    reconcile.add_argument("--roster", required=True, type=Path)

    catch_up = sub.add_parser("catch-up", help="기간 범위 월 감가상각")
    catch_up.add_argument("--company", required=True)
    catch_up.add_argument("--from", dest="start", required=True, help="YYYY-MM")
    catch_up.add_argument("--to", dest="end", required=True, help="YYYY-MM (포함)")

    dispose = sub.add_parser("dispose", help="자산 처분")
    dispose.add_argument("--asset", required=True)
    dispose.add_argument("--type", dest="disposition_type", required=True, help="sale | death | culled")
    dispose.add_argument("--date", dest="disposition_date", required=True, help="YYYY-MM-DD")
    dispose.add_argument("--sale-amount", default="0")
    dispose.add_argument("--notes", default=None)

    reinstate = sub.add_parser("reinstate", help="처분 취소")
    reinstate.add_argument("--asset", required=True)
    reinstate.add_argument("--reason", default="Cow reinstated")

    summary = sub.add_parser("summary", help="월 분개 요약 + 원장 점검")
    summary.add_argument("--company", required=True)
    summary.add_argument("--period", required=True, help="YYYY-MM")

    return parser


def resolve_settings(config_path: Path | None) -> Settings:
    """설정 로드

    --config 없이 기본 settings.yaml도 없으면 기본값 사용.

    Raises:
        SettingsLoadError: 지정한 설정 파일이 없거나 잘못된 경우
    """
    if config_path is None and not Paths.SETTINGS_FILE.exists():
        logger.info(f"{Paths.SETTINGS_FILE} 없음, 기본 설정 사용")
        return Settings()
    return load_settings(config_path)


async def _summary(engine: LedgerEngine, company_id: str, period: Period) -> dict[str, Any]:
    summary = await summarize_period(engine.store, company_id, period.month, period.year)
    issues = await check_integrity(engine.store, company_id)
    return {"summary": summary, "issues": issues}


def _enqueue(engine: LedgerEngine, queue: TaskQueue, args: argparse.Namespace) -> Any:
    """명령 → 작업 등록

    Raises:
        ValidationError: 입력값 검증 실패
    """
    if args.command == "init-db":
        return queue.enqueue("init-db", init_ledger_schema, engine.db)

    if args.command == "reconcile":
        return queue.enqueue(
            "reconcile", run_reconciliation, engine.runner, args.company, args.roster
        )

    if args.command == "catch-up":
        request = parse_request(
            CatchUpRequest, {"company_id": args.company, "start": args.start, "end": args.end}
        )
        return queue.enqueue(
            "catch-up",
            run_monthly_catch_up,
            engine.recompute,
            request.company_id,
            request.start_period,
            request.end_period,
        )

    if args.command == "dispose":
        request = parse_request(DisposeRequest, {
            "asset_id": args.asset,
            "disposition_type": args.disposition_type,
            "disposition_date": args.disposition_date,
            "sale_amount": args.sale_amount,
            "notes": args.notes,
        })
        # 처분은 중간 실패 시 재호출로 수렴하므로 자동 재시도하지 않음
        return queue.enqueue(
            "dispose",
            engine.manager.dispose,
            request.asset_id,
            request.disposition_type,
            request.disposition_date,
            sale_amount=request.sale_amount,
            notes=request.notes,
            retry_policy=RetryPolicy(max_attempts=1),
        )

    if args.command == "reinstate":
        request = parse_request(ReinstateRequest, {"asset_id": args.asset, "reason": args.reason})
        return queue.enqueue(
            "reinstate",
            engine.manager.reinstate,
            request.asset_id,
            reason=request.reason,
            retry_policy=RetryPolicy(max_attempts=1),
        )

    if args.command == "summary":
        try:
            period = Period.parse(args.period)
        except ValueError as e:
            raise ValidationError(str(e), field="period") from e
        return queue.enqueue("summary", _summary, engine, args.company, period)

    raise ValidationError(f"Unknown command: {args.command}", field="command")


def _report(command: str, result: Any) -> None:
    """명령 결과 출력"""
    if result is None:
        print(f"{command}: ok")
        return

    if command == "summary":
        summary = result["summary"]
        print(f"{summary.company_id} {summary.year:04d}-{summary.month:02d}: {summary.entry_count} entries")
        for entry_type, bucket in sorted(summary.by_type.items()):
            print(
                f"  {entry_type:<22} count={bucket.count:<4} amount={bucket.total_amount} "
                f"debit={bucket.total_debit} credit={bucket.total_credit}"
            )
        for issue in result["issues"]:
            print(f"  ! {issue.kind} {issue.reference_id}: {issue.description}")
        return

    print(f"{command}: {result}")


async def run(argv: Sequence[str] | None = None) -> int:
    """CLI 실행

    Returns:
        종료 코드 (0: 성공, 1: 실패, 2: 입력 오류)
    """
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args.config)
    except SettingsLoadError as e:
        logger.error(f"설정 로드 실패: {e}")
        return EXIT_INVALID

    setup_logging("worker", console_level=getattr(logging, settings.log_level))

    db_path = args.db or settings.database.path
    logger.info(f"명령: {args.command} (DB: {db_path})")

    async with SQLiteAdapter(db_path) as db:
        await init_ledger_schema(db)
        engine = LedgerEngine(settings, db)

        try:
            async with engine.create_queue() as queue:
                try:
                    handle = _enqueue(engine, queue, args)
                except ValidationError as e:
                    logger.error(f"입력 오류: {e}")
                    return EXIT_INVALID

                try:
                    result = await handle.wait()
                except (JournalEngineError, StateMachineError) as e:
                    logger.error(f"{args.command} 실패: {e}")
                    return EXIT_FAILED
        finally:
            await engine.close()

    _report(args.command, result)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Worker 메인 함수"""
    return asyncio.run(run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
