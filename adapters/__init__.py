"""
어댑터 레이어

외부 서비스(DB, 원격 재계산 RPC)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import ILedgerStore, IRecomputeService
from adapters.models import JournalQuery, RecomputeResult

__all__ = [
    # Interfaces
    "ILedgerStore",
    "IRecomputeService",
    # Models
    "JournalQuery",
    "RecomputeResult",
]
