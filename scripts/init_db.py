"""
원장 스키마 생성

사용법:
    python -m scripts.init_db
    python -m scripts.init_db --db data/livestock_ledger.db
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Paths
from core.ledger.schema import init_ledger_schema
from core.ledger.types import INITIAL_ACCOUNTS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

LEDGER_TABLES = [
    "account",
    "asset",
    "journal_entry",
    "journal_line",
    "disposition",
    "reconciliation_staging",
]


async def init_db(db_path: Path) -> None:
    """스키마 생성 + 결과 확인"""
    logger.info(f"원장 스키마 생성: {db_path}")

    async with SQLiteAdapter(db_path) as db:
        await init_ledger_schema(db)

        for table in LEDGER_TABLES:
            exists = await db.table_exists(table)
            logger.info(f"  {table}: {'OK' if exists else 'MISSING'}")

        row = await db.fetchone("SELECT COUNT(*) FROM account")
        logger.info(f"  계정 {row[0] if row else 0}/{len(INITIAL_ACCOUNTS)}개")


def main() -> None:
    parser = argparse.ArgumentParser(description="원장 스키마 생성")
    parser.add_argument("--db", type=Path, default=Paths.LEDGER_DB, help="DB 파일 경로")
    args = parser.parse_args()

    asyncio.run(init_db(args.db))


if __name__ == "__main__":
    main()
