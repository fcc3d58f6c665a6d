"""
PostgREST 재계산 RPC 클라이언트

호스팅 DB의 저장 프로시저로 감가상각 재계산을 위임.
IRecomputeService 계약 구현.

요청: POST {base_url}/rest/v1/rpc/{rpc_name}  (JSON 파라미터)
응답: {"success": bool, "total_amount": number, "cows_processed": int, "error": str}
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from adapters.models import RecomputeResult
from core.constants import Defaults
from core.errors import DatabaseError

logger = logging.getLogger(__name__)


class PostgrestRecomputeClient:
    """PostgREST 재계산 RPC 클라이언트

    Args:
        base_url: 프로젝트 URL (예: https://xyz.supabase.co)
        api_key: 서비스 API 키 (apikey + Bearer 헤더)
        timeout: HTTP 요청 타임아웃 (초)
        monthly_rpc: 월 감가상각 RPC 이름
        catch_up_rpc: 자산 catch-up RPC 이름
        transport: httpx 전송 계층 (테스트에서 MockTransport 주입)

    사용 예시:
    ```python
    client = PostgrestRecomputeClient(base_url="https://xyz.supabase.co", api_key="xxx")
    result = await client.process_monthly_depreciation("farm-1", 3, 2024)
    await client.close()
    ```
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = Defaults.RECOMPUTE_TIMEOUT_SEC,
        monthly_rpc: str = Defaults.MONTHLY_RPC,
        catch_up_rpc: str = Defaults.CATCH_UP_RPC,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.monthly_rpc = monthly_rpc
        self.catch_up_rpc = catch_up_rpc
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy init)"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PostgrestRecomputeClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _rpc(self, rpc_name: str, params: dict[str, Any]) -> Any:
        """RPC 호출

        Raises:
            DatabaseError: 전송 실패 또는 HTTP 4xx/5xx
        """
        client = await self._ensure_client()
        url = f"{self.base_url}/rest/v1/rpc/{rpc_name}"

        try:
            response = await client.post(url, json=params)
        except httpx.RequestError as e:
            logger.error(f"RPC request error: {rpc_name}: {e}")
            raise DatabaseError(f"RPC {rpc_name} request failed: {e}", operation=rpc_name) from e

        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            message = error_data.get("message") if isinstance(error_data, dict) else None
            message = message or response.text
            logger.error(
                f"RPC error: {response.status_code} - {message}",
                extra={"rpc": rpc_name, "status_code": response.status_code},
            )
            raise DatabaseError(
                f"RPC {rpc_name} failed ({response.status_code}): {message}",
                operation=rpc_name,
            )

        try:
            return response.json() if response.content else {}
        except ValueError as e:
            raise DatabaseError(f"RPC {rpc_name} returned invalid JSON", operation=rpc_name) from e

    @staticmethod
    def _to_result(data: Any) -> RecomputeResult:
        """RPC 응답 → RecomputeResult"""
        if not isinstance(data, dict):
            # void 반환 프로시저는 성공으로 간주
            return RecomputeResult(success=True)

        try:
            amount = Decimal(str(data.get("total_amount") or "0"))
        except InvalidOperation:
            amount = Decimal("0")

        return RecomputeResult(
            success=bool(data.get("success", True)),
            processed_amount=amount,
            entries_created=int(data.get("entries_created") or 0),
            assets_processed=int(data.get("cows_processed") or 0),
            error=data.get("error"),
        )

    # =========================================================================
    # IRecomputeService
    # =========================================================================

    async def catch_up_depreciation_to_date(
        self,
        asset_id: str,
        through: date,
    ) -> RecomputeResult:
        data = await self._rpc(self.catch_up_rpc, {
            "p_cow_id": asset_id,
            "p_target_date": through.isoformat(),
        })
        result = self._to_result(data)
        logger.info(
            f"원격 catch-up: {asset_id} → {through} success={result.success}",
            extra={"asset_id": asset_id, "processed_amount": str(result.processed_amount)},
        )
        return result

    async def process_monthly_depreciation(
        self,
        company_id: str,
        month: int,
        year: int,
    ) -> RecomputeResult:
        data = await self._rpc(self.monthly_rpc, {
            "p_company_id": company_id,
            "p_target_month": month,
            "p_target_year": year,
        })
        result = self._to_result(data)
        logger.info(
            f"원격 월 감가상각: {company_id} {year:04d}-{month:02d} success={result.success}",
            extra={"company_id": company_id, "processed_amount": str(result.processed_amount)},
        )
        return result
