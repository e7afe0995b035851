# apps/ticker_worker/prices.py

import asyncio
from typing import Any, Dict, List

from packages.contracts.schemas import ExternalPrices
from packages.ticker_lib.config import settings
from packages.ticker_lib.concurrency import gather_or_cancel
from packages.ticker_lib.config.prices import PriceFeedConfig
from packages.ticker_lib.interfaces import PriceFeed, QuoteSource
from packages.ticker_lib.numeric import reconcile_mean, round_half_up


class ExternalPriceAggregator:
    """
    Reconciles the XLM reference prices from independent public sources.

    - BTC/USD and XLM/BTC: mean of every source that answered.
      A group where nobody answered raises PriceUnavailableError.
    - 24h change: CoinMarketCap, retried while the XLM entry is missing.
      Fails open: without it, the 24h-ago price equals the current price.
    """

    def __init__(
        self,
        btc_usd_feeds: List[PriceFeed],
        xlm_btc_feeds: List[PriceFeed],
        quote_source: QuoteSource,
        logger,
        config: PriceFeedConfig | None = None,
    ):
        self.btc_usd_feeds = btc_usd_feeds
        self.xlm_btc_feeds = xlm_btc_feeds
        self.quote_source = quote_source
        self.logger = logger
        self.config = config or settings.prices

    async def fetch_btc_usd(self) -> float:
        samples = await asyncio.gather(*(f.fetch_price() for f in self.btc_usd_feeds))
        price = reconcile_mean(samples, 3, "BTC/USD")
        self.logger.info(f"BTC price = ${price} ({self._answered(samples)})")
        return price

    async def fetch_xlm_btc(self) -> float:
        samples = await asyncio.gather(*(f.fetch_price() for f in self.xlm_btc_feeds))
        price = reconcile_mean(samples, 8, "XLM/BTC")
        self.logger.info(f"XLM price = {price} XLM/BTC ({self._answered(samples)})")
        return price

    @staticmethod
    def _answered(samples) -> str:
        return f"{sum(s is not None for s in samples)}/{len(samples)} sources"

    def _has_quote(self, response: Any) -> bool:
        data = response.get("data") if isinstance(response, dict) else None
        return isinstance(data, dict) and bool(data.get(self.config.cmc_symbol))

    async def fetch_quote_with_retry(self) -> Dict[str, Any]:
        """
        Up to `cmc_retry_attempts` retries with a fixed delay while the response
        lacks the symbol entry. Returns the last response either way.
        """
        response = await self.quote_source.fetch_quote()
        attempt = 0
        while not self._has_quote(response) and attempt < self.config.cmc_retry_attempts:
            attempt += 1
            self.logger.error(f"CoinMarketCap missing response: retry attempt {attempt}")
            await asyncio.sleep(self.config.cmc_retry_delay_seconds)
            response = await self.quote_source.fetch_quote()
        return response

    def _change_pct(self, response: Dict[str, Any]) -> float | None:
        if not self._has_quote(response):
            return None
        try:
            usd_quote = response["data"][self.config.cmc_symbol]["quote"]["USD"]
            change = float(usd_quote["percent_change_24h"])
        except (KeyError, TypeError, ValueError):
            return None
        # -100% would make the 24h-ago price undefined
        return change if change > -100 else None

    async def aggregate(self) -> ExternalPrices:
        btc_usd, xlm_btc = await gather_or_cancel(
            self.fetch_btc_usd(), self.fetch_xlm_btc()
        )
        usd_xlm = round_half_up(btc_usd * xlm_btc, 6)

        # Just in case CoinMarketCap is down
        prices = ExternalPrices(
            usd_btc=btc_usd,
            btc_xlm=xlm_btc,
            usd_xlm=usd_xlm,
            usd_xlm_24h_ago=usd_xlm,
        )
        self.logger.info("Finished external prices")

        self.logger.info("Start CoinMarketCap request")
        try:
            response = await self.fetch_quote_with_retry()
        except Exception as e:
            self.logger.error(f"CoinMarketCap request failed, reporting 0% change: {e!r}")
            return prices

        change = self._change_pct(response)
        if change is None:
            self.logger.error(f"CoinMarketCap missing response: {str(response)[:200]}")
            return prices

        prices.usd_xlm_24h_ago = round_half_up(usd_xlm / (1 + change / 100), 6)
        prices.usd_xlm_change = round_half_up(change, 6)
        self.logger.info("CoinMarketCap request success")
        return prices
