"""
worker/bootstrap.py 테스트

CLI 파서, 설정 해석, 명령 실행 (임시 DB)
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.constants import Paths
from core.domain.models import Asset
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from core.types import AssetStatus
from worker import bootstrap
from worker.bootstrap import (
    EXIT_FAILED,
    EXIT_INVALID,
    EXIT_OK,
    LedgerEngine,
    build_parser,
    resolve_settings,
    run,
)


@pytest.fixture(autouse=True)
def no_file_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """테스트 중 로그 파일 생성 방지"""
    monkeypatch.setattr(bootstrap, "setup_logging", lambda *args, **kwargs: None)


@pytest.fixture
def no_default_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(Paths, "SETTINGS_FILE", tmp_path / "absent.yaml")


async def _seed(db_path: Path, asset: Asset) -> None:
    async with SQLiteAdapter(db_path) as db:
        await init_ledger_schema(db)
        await LedgerStore(db).insert_asset(asset)


class TestParser:
    """build_parser 테스트"""

    def test_catch_up(self) -> None:
        args = build_parser().parse_args(
            ["catch-up", "--company", "farm-1", "--from", "2024-01", "--to", "2024-06"]
        )

        assert args.command == "catch-up"
        assert args.start == "2024-01"
        assert args.end == "2024-06"

    def test_dispose_defaults(self) -> None:
        args = build_parser().parse_args(
            ["dispose", "--asset", "cow-1", "--type", "death", "--date", "2024-06-15"]
        )

        assert args.disposition_type == "death"
        assert args.disposition_date == "2024-06-15"
        assert args.sale_amount == "0"
        assert args.notes is None

    def test_global_options(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(["--db", str(tmp_path / "x.db"), "init-db"])

        assert args.db == tmp_path / "x.db"
        assert args.config is None

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestResolveSettings:
    """resolve_settings 테스트"""

    def test_defaults_without_file(self, no_default_settings: None) -> None:
        assert resolve_settings(None) == Settings()

    def test_explicit_file(self, temp_settings_file: Path) -> None:
        assert resolve_settings(temp_settings_file).depreciation.useful_life_months == 48


class TestLedgerEngine:
    """LedgerEngine 구성 테스트"""

    @pytest.mark.asyncio
    async def test_wiring_from_settings(self, temp_settings_file: Path, tmp_path: Path) -> None:
        settings = resolve_settings(temp_settings_file)

        async with SQLiteAdapter(tmp_path / "ledger.db") as db:
            engine = LedgerEngine(settings, db)
            queue = engine.create_queue()
            await engine.close()

        assert engine.calculator.useful_life_months == 48
        assert engine.coordinator.options.batch_size == 25
        assert engine.coordinator.options.retry_attempts == 5
        assert queue.concurrency == 1
        assert queue.default_policy.max_attempts == 2
        assert queue.default_policy.delay_for(2) == 1.5

    @pytest.mark.asyncio
    async def test_postgrest_backend(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text(
            "recompute:\n  backend: postgrest\n  base_url: https://db.example.com\n  api_key: k\n",
            encoding="utf-8",
        )

        async with SQLiteAdapter(tmp_path / "ledger.db") as db:
            engine = LedgerEngine(resolve_settings(config), db)
            await engine.close()

        assert type(engine.recompute).__name__ == "PostgrestRecomputeClient"
        assert engine.manager.recompute is engine.recompute


class TestRun:
    """run 테스트"""

    @pytest.mark.asyncio
    async def test_init_db(
        self,
        no_default_settings: None,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        db_path = tmp_path / "ledger.db"

        code = await run(["--db", str(db_path), "init-db"])

        assert code == EXIT_OK
        assert db_path.exists()
        assert "init-db: ok" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_missing_config(self, tmp_path: Path) -> None:
        code = await run(["--config", str(tmp_path / "nope.yaml"), "init-db"])

        assert code == EXIT_INVALID

    @pytest.mark.asyncio
    async def test_invalid_period(self, no_default_settings: None, tmp_path: Path) -> None:
        code = await run([
            "--db", str(tmp_path / "ledger.db"),
            "catch-up", "--company", "farm-1", "--from", "2024/01", "--to", "2024-02",
        ])

        assert code == EXIT_INVALID

    @pytest.mark.asyncio
    async def test_invalid_summary_period(self, no_default_settings: None, tmp_path: Path) -> None:
        code = await run([
            "--db", str(tmp_path / "ledger.db"),
            "summary", "--company", "farm-1", "--period", "June",
        ])

        assert code == EXIT_INVALID

    @pytest.mark.asyncio
    async def test_dispose_unknown_asset(self, no_default_settings: None, tmp_path: Path) -> None:
        code = await run([
            "--db", str(tmp_path / "ledger.db"),
            "dispose", "--asset", "cow-404", "--type", "death", "--date", "2024-06-15",
        ])

        assert code == EXIT_FAILED

    @pytest.mark.asyncio
    async def test_catch_up_dispose_and_summary(
        self,
        no_default_settings: None,
        tmp_path: Path,
        purchased_cow: Asset,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        db_path = tmp_path / "ledger.db"
        await _seed(db_path, purchased_cow)

        catch_up = await run([
            "--db", str(db_path),
            "catch-up", "--company", "farm-1", "--from", "2024-01", "--to", "2024-05",
        ])
        dispose = await run([
            "--db", str(db_path),
            "dispose", "--asset", "cow-1042", "--type", "sale",
            "--date", "2024-06-15", "--sale-amount", "1800",
        ])
        summary = await run([
            "--db", str(db_path),
            "summary", "--company", "farm-1", "--period", "2024-06",
        ])

        assert (catch_up, dispose, summary) == (EXIT_OK, EXIT_OK, EXIT_OK)
        out = capsys.readouterr().out
        assert "farm-1 2024-06: 1 entries" in out
        assert "disposition" in out

        async with SQLiteAdapter(db_path) as db:
            asset = await LedgerStore(db).get_asset("cow-1042")
        assert asset.status == AssetStatus.DISPOSED
        assert asset.accumulated_depreciation == Decimal("187.50")

    @pytest.mark.asyncio
    async def test_reinstate_active_asset_fails(
        self,
        no_default_settings: None,
        tmp_path: Path,
    ) -> None:
        db_path = tmp_path / "ledger.db"
        await _seed(db_path, Asset.create(
            company_id="farm-1",
            tag="7",
            purchase_price=Decimal("1000"),
            freshen_date=date(2024, 1, 1),
            asset_id="cow-7",
        ))

        code = await run(["--db", str(db_path), "reinstate", "--asset", "cow-7"])

        assert code == EXIT_FAILED
