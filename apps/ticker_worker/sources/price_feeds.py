# apps/ticker_worker/sources/price_feeds.py

import math
from typing import Any, Callable, List

from packages.ticker_lib.config.prices import PriceFeedConfig
from packages.ticker_lib.http import HttpClient
from packages.ticker_lib.interfaces import PriceFeed
from packages.ticker_lib.numeric import round_half_up

Extractor = Callable[[Any], float]


# --- BTC priced in USD ---


def coindesk_btc_usd(body: Any) -> float:
    return round_half_up(float(body["bpi"]["USD"]["rate_float"]), 3)


def bitfinex_btc_usd(body: Any) -> float:
    # [BID, BID_SIZE, ASK, ASK_SIZE, ...]
    return round_half_up(float(body[2]), 3)


def coinbase_btc_usd(body: Any) -> float:
    return round_half_up(float(body["data"]["amount"]), 3)


def kraken_btc_usd(body: Any) -> float:
    return round_half_up(float(body["result"]["XXBTZUSD"]["c"][0]), 3)


# --- XLM priced in BTC ---


def poloniex_xlm_btc(body: Any) -> float:
    return float(body["BTC_STR"]["last"])


def bittrex_xlm_btc(body: Any) -> float:
    return float(body["result"]["Last"])


def kraken_xlm_btc(body: Any) -> float:
    return float(body["result"]["XXLMXXBT"]["c"][0])


class JsonPriceFeed(PriceFeed):
    """GET a JSON document and pull one number out of it."""

    def __init__(self, name: str, url: str, extract: Extractor, http: HttpClient, logger):
        self.name = name
        self.url = url
        self.extract = extract
        self.http = http
        self.logger = logger

    async def fetch_price(self) -> float | None:
        try:
            body = await self.http.get_json(self.url)
            price = self.extract(body)
        except Exception as e:
            self.logger.warning(f"{self.name} price unavailable: {e!r}")
            return None

        if not math.isfinite(price) or price <= 0:
            self.logger.warning(f"{self.name} returned an unusable price: {price}")
            return None

        self.logger.info(f"{self.name:<10} price {price}")
        return price


def build_btc_usd_feeds(
    http: HttpClient, logger, config: PriceFeedConfig
) -> List[PriceFeed]:
    return [
        JsonPriceFeed("Coindesk", config.coindesk_url, coindesk_btc_usd, http, logger),
        JsonPriceFeed("Bitfinex", config.bitfinex_url, bitfinex_btc_usd, http, logger),
        JsonPriceFeed("Coinbase", config.coinbase_url, coinbase_btc_usd, http, logger),
        JsonPriceFeed("Kraken", config.kraken_btc_url, kraken_btc_usd, http, logger),
    ]


def build_xlm_btc_feeds(
    http: HttpClient, logger, config: PriceFeedConfig
) -> List[PriceFeed]:
    return [
        JsonPriceFeed("Poloniex", config.poloniex_url, poloniex_xlm_btc, http, logger),
        JsonPriceFeed("Bittrex", config.bittrex_url, bittrex_xlm_btc, http, logger),
        JsonPriceFeed("Kraken", config.kraken_xlm_url, kraken_xlm_btc, http, logger),
    ]
