"""
PostgREST 어댑터 패키지

호스팅 DB의 감가상각 재계산 RPC 클라이언트 제공.
"""

from adapters.postgrest.recompute_client import PostgrestRecomputeClient

__all__ = [
    "PostgrestRecomputeClient",
]
