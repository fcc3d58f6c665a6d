"""
SQLite 어댑터

원장 저장소가 쓰는 단일 aiosqlite 연결.
- WAL 모드, 외래 키 제약 (계정 코드 / 분개 / 자산 참조)
- 트랜잭션 중첩 시 가장 바깥 블록에서만 커밋/롤백 (배치 단위 원자성)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Iterable

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# 연결마다 적용
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=30000",
    "PRAGMA foreign_keys=ON",
)


class SQLiteAdapter:
    """원장 DB 연결

    Args:
        db_path: DB 파일 경로 (":memory:" 허용, 부모 디렉토리는 자동 생성)

    사용 예시:
    ```python
    async with SQLiteAdapter(Paths.LEDGER_DB) as db:
        await init_ledger_schema(db)
        async with db.transaction():
            await db.executemany("INSERT INTO journal_line ...", rows)
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._tx_depth = 0

    async def connect(self) -> None:
        """연결 (이미 연결되어 있으면 무시)"""
        if self._conn is not None:
            return

        if self.db_path != MEMORY_DB:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(self.db_path)
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        self._conn = conn

        logger.info(f"원장 DB 연결: {self.db_path}", extra={"db_path": self.db_path})

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            self._tx_depth = 0
            logger.info(f"원장 DB 연결 종료: {self.db_path}")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"Ledger database not connected: {self.db_path}")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        return await self._require_conn().execute(sql, parameters or ())

    async def executemany(
        self,
        sql: str,
        parameters: Iterable[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        return await self._require_conn().executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋 (트랜잭션 블록 안에서는 바깥 블록에 맡김)"""
        if self._tx_depth == 0:
            await self._require_conn().commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 블록

        성공 시 커밋, 예외 시 롤백.
        중첩된 블록은 가장 바깥 블록이 끝날 때 한 번에 커밋/롤백.
        """
        conn = self._require_conn()

        self._tx_depth += 1
        try:
            yield conn
        except Exception:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                await conn.rollback()
            raise
        self._tx_depth -= 1
        if self._tx_depth == 0:
            await conn.commit()

    async def table_exists(self, table_name: str) -> bool:
        row = await self.fetchone(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return row is not None

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
