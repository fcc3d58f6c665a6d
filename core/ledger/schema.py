"""
원장 스키마 초기화

Worker 시작 시 자동으로 원장/자산/처분/스테이징 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 반복 실행해도 안전하게 동작.
금액은 Decimal 문자열(TEXT)로 저장.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """원장 스키마 초기화

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_asset_tables(db)
    await _insert_initial_accounts(db)
    logger.info("원장 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """계정/분개 테이블 생성"""

    # account 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account (
            account_code     TEXT PRIMARY KEY,
            account_type     TEXT NOT NULL,
            account_name     TEXT NOT NULL,
            is_active        INTEGER DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # journal_entry 테이블 (게시 후 불변)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS journal_entry (
            entry_id          TEXT PRIMARY KEY,
            company_id        TEXT NOT NULL,
            entry_date        TEXT NOT NULL,
            month             INTEGER NOT NULL,
            year              INTEGER NOT NULL,
            entry_type        TEXT NOT NULL,
            description       TEXT NOT NULL,
            total_amount      TEXT NOT NULL,
            reverses_entry_id TEXT,
            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (reverses_entry_id) REFERENCES journal_entry(entry_id)
        )
    """)

    # journal_line 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS journal_line (
            line_id          TEXT PRIMARY KEY,
            entry_id         TEXT NOT NULL,
            asset_id         TEXT,
            account_code     TEXT NOT NULL,
            account_name     TEXT NOT NULL,
            description      TEXT NOT NULL,
            debit_amount     TEXT NOT NULL DEFAULT '0',
            credit_amount    TEXT NOT NULL DEFAULT '0',
            line_type        TEXT NOT NULL,
            line_order       INTEGER DEFAULT 0,
            reverses_line_id TEXT,
            FOREIGN KEY (entry_id) REFERENCES journal_entry(entry_id),
            FOREIGN KEY (account_code) REFERENCES account(account_code)
        )
    """)

    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_journal_entry_period "
        "ON journal_entry(company_id, entry_type, year, month)"
    )
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_entry_reverses ON journal_entry(reverses_entry_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_line_entry ON journal_line(entry_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_line_asset ON journal_line(asset_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_journal_line_account ON journal_line(account_code)")

    await db.commit()
    logger.debug("원장 테이블 생성 완료")


async def _create_asset_tables(db: "SQLiteAdapter") -> None:
    """자산/처분/스테이징 테이블 생성"""

    # asset 테이블 (삭제하지 않고 status로 관리)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS asset (
            asset_id                 TEXT PRIMARY KEY,
            company_id               TEXT NOT NULL,
            tag                      TEXT NOT NULL,
            purchase_price           TEXT NOT NULL,
            salvage_value            TEXT NOT NULL DEFAULT '0',
            freshen_date             TEXT,
            birth_date               TEXT,
            acquisition_type         TEXT NOT NULL DEFAULT 'purchased',
            status                   TEXT NOT NULL DEFAULT 'active',
            disposition_id           TEXT,
            accumulated_depreciation TEXT NOT NULL DEFAULT '0',
            current_value            TEXT NOT NULL,
            created_at               TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at               TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # disposition 테이블 (자산당 활성 처분 하나)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS disposition (
            disposition_id   TEXT PRIMARY KEY,
            asset_id         TEXT NOT NULL UNIQUE,
            company_id       TEXT NOT NULL,
            disposition_date TEXT NOT NULL,
            disposition_type TEXT NOT NULL,
            sale_amount      TEXT NOT NULL DEFAULT '0',
            final_book_value TEXT NOT NULL,
            gain_loss        TEXT NOT NULL,
            journal_entry_id TEXT NOT NULL,
            notes            TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (asset_id) REFERENCES asset(asset_id)
        )
    """)

    # reconciliation_staging 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS reconciliation_staging (
            record_id          TEXT PRIMARY KEY,
            company_id         TEXT NOT NULL,
            discrepancy_type   TEXT NOT NULL,
            asset_id           TEXT,
            tag                TEXT NOT NULL,
            birth_date         TEXT,
            source_file_name   TEXT NOT NULL,
            resolution_status  TEXT NOT NULL DEFAULT 'pending',
            resolution_action  TEXT,
            created_at         TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("CREATE INDEX IF NOT EXISTS idx_asset_company_status ON asset(company_id, status)")
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_staging_company_status "
        "ON reconciliation_staging(company_id, resolution_status)"
    )

    await db.commit()
    logger.debug("자산 테이블 생성 완료")


async def _insert_initial_accounts(db: "SQLiteAdapter") -> None:
    """초기 계정 삽입

    INITIAL_ACCOUNTS에 정의된 모든 계정을 생성.
    이미 존재하는 계정은 무시 (INSERT OR IGNORE).
    """
    from core.ledger.types import INITIAL_ACCOUNTS

    await db.executemany(
        """
        INSERT OR IGNORE INTO account (account_code, account_type, account_name)
        VALUES (?, ?, ?)
        """,
        INITIAL_ACCOUNTS,
    )
    await db.commit()
    logger.debug("초기 계정 삽입 완료")
