"""
복식부기 (Double-Entry Bookkeeping) 시스템

젖소 자산의 취득 → 월 감가상각 → 처분 → 처분 취소 분개를 생성하고
차변/대변 균형을 보장.

사용 예시:
```python
from core.ledger import JournalEntryBuilder
from core.ledger.store import LedgerStore
from core.ledger.persistence import JournalPersistenceCoordinator

builder = JournalEntryBuilder()
entry = builder.build_acquisition(asset, entry_date=date(2024, 1, 1))

coordinator = JournalPersistenceCoordinator(LedgerStore(db))
result = await coordinator.persist([entry])
```
"""

from core.ledger.balance import validate_balance
from core.ledger.entry_builder import (
    DispositionData,
    JournalEntry,
    JournalEntryBuilder,
    JournalLine,
)
from core.ledger.types import (
    ACCOUNT_NAMES,
    DISPOSITION_ACCOUNTS,
    INITIAL_ACCOUNTS,
    AccountCodes,
    AccountType,
    EntryType,
    LineType,
)

__all__ = [
    # 핵심 클래스
    "JournalEntryBuilder",
    "JournalEntry",
    "JournalLine",
    "DispositionData",
    "validate_balance",
    # Enum
    "EntryType",
    "LineType",
    "AccountType",
    # 상수
    "AccountCodes",
    "ACCOUNT_NAMES",
    "DISPOSITION_ACCOUNTS",
    "INITIAL_ACCOUNTS",
]
