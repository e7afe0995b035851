# apps/ticker_worker/sources/coinmarketcap.py

from typing import Any, Dict

from packages.ticker_lib.config.prices import PriceFeedConfig
from packages.ticker_lib.http import HttpClient
from packages.ticker_lib.interfaces import QuoteSource


class CoinMarketCapQuoteSource(QuoteSource):
    def __init__(self, http: HttpClient, config: PriceFeedConfig):
        self.http = http
        self.config = config

    async def fetch_quote(self) -> Dict[str, Any]:
        return await self.http.get_json(
            self.config.cmc_url,
            params={"symbol": self.config.cmc_symbol},
            headers={"X-CMC_PRO_API_KEY": self.config.cmc_api_key},
        )
