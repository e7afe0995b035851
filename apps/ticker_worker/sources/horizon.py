# apps/ticker_worker/sources/horizon.py

import asyncio
from typing import Any, Dict

from aiolimiter import AsyncLimiter
from pydantic import ValidationError

from packages.contracts.payloads import (
    AssetRef,
    OrderBook,
    RootStatus,
    TradeAggregationPage,
)
from packages.contracts.vocabulary.general import TradeOrder
from packages.ticker_lib.config.ledger import LedgerConfig
from packages.ticker_lib.errors import SourceError
from packages.ticker_lib.http import HttpClient
from packages.ticker_lib.interfaces import LedgerSource


def asset_params(prefix: str, asset: AssetRef) -> Dict[str, str]:
    """Horizon query parameters describing one asset."""
    if asset.is_native:
        return {f"{prefix}_asset_type": "native"}
    return {
        f"{prefix}_asset_type": asset.asset_type,
        f"{prefix}_asset_code": asset.code,
        f"{prefix}_asset_issuer": asset.issuer or "",
    }


class HorizonLedgerSource(LedgerSource):
    def __init__(
        self,
        http: HttpClient,
        config: LedgerConfig,
        app_name: str,
        limiter: AsyncLimiter | None = None,
        logger=None,
    ):
        self.http = http
        self.config = config
        self.base_url = config.horizon_url.rstrip("/")
        self.headers = {"X-App-Name": app_name}
        self.limiter = limiter or AsyncLimiter(config.rate_limit_per_second, 1)
        self.concurrency_limiter = asyncio.Semaphore(config.max_concurrent_requests)
        self.logger = logger

    async def _get(self, path: str, params: Dict[str, str] | None = None) -> Any:
        async with self.concurrency_limiter:
            async with self.limiter:
                if self.logger:
                    self.logger.debug(f"GET {path} {params or ''}")
                return await self.http.get_json(
                    f"{self.base_url}{path}", params=params, headers=self.headers
                )

    async def get_root_status(self) -> RootStatus:
        body = await self._get("/")
        try:
            return RootStatus.model_validate(body)
        except ValidationError as e:
            raise SourceError("horizon /", f"Malformed root response: {e}")

    async def get_order_book(self, base: AssetRef, counter: AssetRef) -> OrderBook:
        params = {**asset_params("selling", base), **asset_params("buying", counter)}
        body = await self._get("/order_book", params)
        try:
            return OrderBook.model_validate(body)
        except ValidationError as e:
            raise SourceError("horizon /order_book", f"Malformed order book: {e}")

    async def get_trade_aggregations(
        self,
        base: AssetRef,
        counter: AssetRef,
        start_ms: int,
        end_ms: int,
        resolution_ms: int,
        offset: int = 0,
        limit: int = 200,
        order: TradeOrder = TradeOrder.DESC,
    ) -> TradeAggregationPage:
        params = {
            **asset_params("base", base),
            **asset_params("counter", counter),
            "start_time": str(start_ms),
            "end_time": str(end_ms),
            "resolution": str(resolution_ms),
            "offset": str(offset),
            "limit": str(limit),
            "order": str(order),
        }
        body = await self._get("/trade_aggregations", params)
        try:
            return TradeAggregationPage(
                records=body["_embedded"]["records"], limit=limit, order=str(order)
            )
        except (KeyError, TypeError, ValidationError) as e:
            raise SourceError(
                "horizon /trade_aggregations", f"Malformed aggregation page: {e!r}"
            )
