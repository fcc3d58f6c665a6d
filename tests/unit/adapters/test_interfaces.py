"""
어댑터 인터페이스 테스트

Protocol 준수 여부 (runtime_checkable) 확인.
"""

from pathlib import Path

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import ILedgerStore, IRecomputeService
from adapters.mock.ledger_store import InMemoryLedgerStore
from adapters.mock.recompute import MockRecomputeService
from adapters.postgrest.recompute_client import PostgrestRecomputeClient
from core.ledger.persistence import JournalPersistenceCoordinator
from core.ledger.recompute import LedgerRecomputeService
from core.ledger.store import LedgerStore


class TestILedgerStore:
    """ILedgerStore 준수 테스트"""

    def test_in_memory_store(self) -> None:
        assert isinstance(InMemoryLedgerStore(), ILedgerStore)

    def test_sqlite_store(self, tmp_path: Path) -> None:
        store = LedgerStore(SQLiteAdapter(tmp_path / "ledger.db"))

        assert isinstance(store, ILedgerStore)

    def test_unrelated_object(self) -> None:
        assert not isinstance(object(), ILedgerStore)


class TestIRecomputeService:
    """IRecomputeService 준수 테스트"""

    def test_ledger_recompute(self) -> None:
        store = InMemoryLedgerStore()
        service = LedgerRecomputeService(store, JournalPersistenceCoordinator(store))

        assert isinstance(service, IRecomputeService)

    def test_mock_recompute(self) -> None:
        assert isinstance(MockRecomputeService(), IRecomputeService)

    def test_postgrest_client(self) -> None:
        client = PostgrestRecomputeClient(base_url="https://db.example.com", api_key="k")

        assert isinstance(client, IRecomputeService)

    def test_store_is_not_recompute(self) -> None:
        assert not isinstance(InMemoryLedgerStore(), IRecomputeService)
