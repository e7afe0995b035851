# tests/conftest.py
"""In-memory fakes of every collaborator the ticker pipeline talks to."""

import asyncio
from typing import Any, Dict, List, Tuple

import pytest
from loguru import logger as _logger

from packages.contracts.payloads import (
    AssetRef,
    DirectorySnapshot,
    OrderBook,
    RootStatus,
    TradeAggregationPage,
    TradeBucket,
)
from packages.contracts.schemas import ExternalPrices
from packages.contracts.vocabulary.general import TradeOrder
from packages.ticker_lib.config import Settings
from packages.ticker_lib.config.pipeline import PipelineConfig
from packages.ticker_lib.config.prices import PriceFeedConfig
from packages.ticker_lib.interfaces import (
    DirectorySource,
    LedgerSource,
    PriceFeed,
    QuoteSource,
    VersionProbe,
)
from apps.ticker_worker.sources.factory import TickerSources

CMC_KEY = "cmc-test-key-0123456789"

XLM = AssetRef(code="XLM")
USD = AssetRef(code="USD", issuer="GUSDISSUER")
EURT = AssetRef(code="EURT", issuer="GEURTISSUER")


def book(bids: List[Tuple[float, float]], asks: List[Tuple[float, float]]) -> OrderBook:
    return OrderBook.model_validate(
        {
            "bids": [{"price": p, "amount": a} for p, a in bids],
            "asks": [{"price": p, "amount": a} for p, a in asks],
        }
    )


def page(
    closes: List[float],
    base_volume: float = 0.0,
    counter_volume: float = 0.0,
    trade_count: int = 1,
) -> TradeAggregationPage:
    """Newest bucket first, like Horizon with order=desc."""
    return TradeAggregationPage(
        records=[
            TradeBucket(
                close=c,
                base_volume=base_volume,
                counter_volume=counter_volume,
                trade_count=trade_count,
            )
            for c in closes
        ],
        limit=200,
        order=TradeOrder.DESC.value,
    )


def cmc_response(percent_change: float) -> Dict[str, Any]:
    return {"data": {"XLM": {"quote": {"USD": {"percent_change_24h": percent_change}}}}}


class FakeLedger(LedgerSource):
    """Books and pages are keyed by (str(base), str(counter)). Exceptions are raised."""

    def __init__(self, books=None, pages=None, root=None):
        self.books = books or {}
        self.pages = pages or {}
        self.root = root or RootStatus(
            core_latest_ledger=4242, network_passphrase="Test SDF Network"
        )
        self.book_calls: List[Tuple[str, str]] = []
        self.page_calls: List[Dict[str, Any]] = []

    async def get_root_status(self) -> RootStatus:
        return self.root

    async def get_order_book(self, base, counter) -> OrderBook:
        key = (str(base), str(counter))
        self.book_calls.append(key)
        result = self.books.get(key, OrderBook())
        if isinstance(result, Exception):
            raise result
        return result

    async def get_trade_aggregations(
        self,
        base,
        counter,
        start_ms,
        end_ms,
        resolution_ms,
        offset=0,
        limit=200,
        order=TradeOrder.DESC,
    ) -> TradeAggregationPage:
        key = (str(base), str(counter))
        self.page_calls.append(
            {
                "key": key,
                "start_ms": start_ms,
                "end_ms": end_ms,
                "resolution_ms": resolution_ms,
                "offset": offset,
                "limit": limit,
                "order": order,
            }
        )
        result = self.pages.get(key, TradeAggregationPage())
        if isinstance(result, Exception):
            raise result
        return result


class FakeDirectory(DirectorySource):
    def __init__(self, snapshot=None, error: Exception | None = None, delay: float = 0):
        self.snapshot = snapshot or DirectorySnapshot()
        self.error = error
        self.delay = delay

    async def initialize(self) -> DirectorySnapshot:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.snapshot


class FakePriceFeed(PriceFeed):
    def __init__(self, name: str, price: float | None):
        self.name = name
        self.price = price

    async def fetch_price(self) -> float | None:
        return self.price


class FakeQuoteSource(QuoteSource):
    """Plays back responses in order and repeats the last one."""

    def __init__(self, responses: List[Any]):
        self.responses = responses
        self.calls = 0

    async def fetch_quote(self) -> Dict[str, Any]:
        response = self.responses[min(self.calls, len(self.responses) - 1)]
        self.calls += 1
        if isinstance(response, Exception):
            raise response
        return response


class FakeVersionProbe(VersionProbe):
    def __init__(self, version: int = 1234):
        self.version = version

    async def fetch_version(self) -> int:
        return self.version


@pytest.fixture
def logger():
    return _logger.bind(app="tests", context="tests")


@pytest.fixture
def price_config():
    return PriceFeedConfig(COIN_MARKET_CAP_KEY=CMC_KEY, cmc_retry_delay_seconds=0)


@pytest.fixture
def prices():
    """USD/BTC 101, BTC/XLM 0.0001 and XLM up 1% over 24h."""
    return ExternalPrices(
        usd_btc=101.0,
        btc_xlm=0.0001,
        usd_xlm=0.0101,
        usd_xlm_24h_ago=0.01,
        usd_xlm_change=1.0,
    )


@pytest.fixture
def snapshot():
    return DirectorySnapshot.model_validate(
        {
            "assets": {
                "USD-anchor.com": {
                    "code": "USD",
                    "issuer": USD.issuer,
                    "domain": "anchor.com",
                },
                "EURT-tempo.eu.com": {
                    "code": "EURT",
                    "issuer": EURT.issuer,
                    "domain": "tempo.eu.com",
                },
                "DEAD-nowhere.org": {
                    "code": "DEAD",
                    "issuer": "GDEADISSUER",
                    "domain": "nowhere.org",
                },
            },
            "anchors": {
                "anchor.com": {"website": "https://anchor.com"},
                "tempo.eu.com": {"website": "https://tempo.eu.com"},
                "nowhere.org": {"website": "https://nowhere.org"},
            },
            "pairs": {
                "XLM-native/USD-anchor.com": {
                    "baseBuying": {"code": "XLM", "issuer": None},
                    "counterSelling": {"code": "USD", "issuer": USD.issuer},
                },
                "EURT-tempo.eu.com/XLM-native": {
                    "baseBuying": {"code": "EURT", "issuer": EURT.issuer},
                    "counterSelling": {"code": "XLM", "issuer": None},
                },
                "USD-anchor.com/EURT-tempo.eu.com": {
                    "baseBuying": {"code": "USD", "issuer": USD.issuer},
                    "counterSelling": {"code": "EURT", "issuer": EURT.issuer},
                },
            },
            "buildID": "build-abc123",
        }
    )


@pytest.fixture
def ledger():
    return FakeLedger(
        books={
            ("XLM-native", str(USD)): book([(0.50, 100)], [(0.52, 100)]),
            (str(EURT), "XLM-native"): book([(9.0, 40)], [(10.0, 60)]),
            (str(USD), str(EURT)): book([(0.9, 5)], [(1.1, 5)]),
        },
        pages={
            ("XLM-native", str(USD)): page([0.51] * 7, base_volume=100, trade_count=2),
            (str(EURT), "XLM-native"): page([9.5] * 8, counter_volume=50, trade_count=3),
        },
    )


@pytest.fixture
def make_sources(ledger, snapshot):
    def _make(**overrides) -> TickerSources:
        parts = dict(
            ledger=ledger,
            directory=FakeDirectory(snapshot),
            btc_usd_feeds=[
                FakePriceFeed("Coindesk", 100.0),
                FakePriceFeed("Bitfinex", None),
                FakePriceFeed("Coinbase", 102.0),
                FakePriceFeed("Kraken", None),
            ],
            xlm_btc_feeds=[
                FakePriceFeed("Poloniex", 0.0001),
                FakePriceFeed("Bittrex", None),
                FakePriceFeed("Kraken", None),
            ],
            quote=FakeQuoteSource([cmc_response(1.0)]),
            version_probe=FakeVersionProbe(),
        )
        parts.update(overrides)
        return TickerSources(**parts)

    return _make


@pytest.fixture
def make_settings(price_config):
    def _make(**pipeline) -> Settings:
        return Settings(prices=price_config, pipeline=PipelineConfig(**pipeline))

    return _make
