# tests/test_pair_metrics.py

from datetime import datetime, timezone

import pytest

from packages.contracts.schemas import Asset, Pair, Ticker, TickerMeta
from packages.contracts.vocabulary.general import NATIVE_ASSET_ID, NativeLeg
from packages.ticker_lib.config.ledger import LedgerConfig
from packages.ticker_lib.errors import SourceError
from apps.ticker_worker.pair_metrics import (
    PairMetricsComputer,
    apply_pair_metrics,
    depth_band_sums,
    native_leg,
    order_book_metrics,
    trade_window,
)
from conftest import EURT, USD, XLM, FakeLedger, book, page

NOW = datetime(2024, 1, 2, tzinfo=timezone.utc)


def computer(ledger, prices, logger):
    return PairMetricsComputer(
        ledger, prices, logger, config=LedgerConfig(), clock=lambda: NOW
    )


class TestOrderBookMetrics:
    def test_spread_price_and_depth(self):
        ob = book(
            bids=[(0.50, 100), (0.47, 200), (0.40, 1000)],
            asks=[(0.52, 400), (0.55, 100), (0.60, 50)],
        )
        m = order_book_metrics(ob, NativeLeg.COUNTER)

        assert m.bid == 0.5
        assert m.ask == 0.52
        assert m.spread == 0.0385
        assert m.price == 0.51
        # bids within 10%: 100 + 200, asks within 10%: 400 + 100
        assert m.depth10_amount == 300
        assert (m.num_bids, m.num_asks) == (3, 3)

    def test_depth_takes_the_thinner_side(self):
        ob = book(bids=[(1.0, 5000)], asks=[(1.0, 10)])
        assert depth_band_sums(ob, 1.0) == (5000.0, 10.0)
        assert order_book_metrics(ob, NativeLeg.BASE).depth10_amount == 10

    def test_one_sided_book_has_no_metrics(self):
        assert order_book_metrics(book([(0.5, 1)], []), NativeLeg.COUNTER) is None
        assert order_book_metrics(book([], [(0.5, 1)]), NativeLeg.BASE) is None

    def test_dust_book_has_no_metrics(self):
        # Both sides round to 0 at 7 decimals
        ob = book([(3e-8, 1e9)], [(4e-8, 1e9)])
        assert order_book_metrics(ob, NativeLeg.COUNTER) is None
        assert order_book_metrics(ob, NativeLeg.BASE) is None

    def test_dust_bid_with_wide_spread(self):
        ob = book([(3e-8, 1)], [(0.5, 1)])
        assert order_book_metrics(ob, NativeLeg.COUNTER) is None
        assert order_book_metrics(ob, NativeLeg.BASE).price == 0.25

    def test_wide_spread_uses_bid_when_xlm_is_counter(self):
        ob = book([(0.5, 1)], [(1.0, 1)])
        assert order_book_metrics(ob, NativeLeg.COUNTER).price == 0.5
        assert order_book_metrics(ob, NativeLeg.BASE).price == 0.75


class TestTradeWindow:
    def test_oldest_closes_come_from_the_tail(self):
        w = trade_window(page([0.51, 0.5, 0.5, 0.5, 0.48, 0.52, 0.46], counter_volume=10))
        assert w.num_buckets == 7
        assert w.oldest_closes == (0.48, 0.52, 0.46)
        assert w.counter_volume == 70.0
        assert w.num_trades == 7

    def test_empty_page(self):
        w = trade_window(page([]))
        assert w.num_buckets == 0
        assert w.base_volume == 0.0
        assert w.num_trades == 0


class TestNativeLeg:
    def test_orientation(self):
        assert native_leg(Pair(base=XLM, counter=USD)) == NativeLeg.BASE
        assert native_leg(Pair(base=USD, counter=XLM)) == NativeLeg.COUNTER
        assert native_leg(Pair(base=USD, counter=EURT)) == NativeLeg.NONE


class TestPairMetricsComputer:
    @pytest.mark.asyncio
    async def test_xlm_counter_leg(self, logger, prices):
        key = (str(USD), "XLM-native")
        ledger = FakeLedger(
            books={key: book([(0.50, 100)], [(0.52, 100)])},
            pages={
                key: page(
                    [0.51, 0.5, 0.5, 0.5, 0.48, 0.52, 0.46],
                    counter_volume=100,
                    trade_count=2,
                )
            },
        )
        m = await computer(ledger, prices, logger).compute("USD/XLM", Pair(base=USD, counter=XLM))

        assert m.asset_ref == USD
        assert m.asset.price_xlm == 0.51
        assert m.asset.change24h_xlm == 6.25
        assert m.asset.change24h_usd == 7.31
        assert m.asset.volume24h_xlm == 700
        assert m.asset.volume24h_usd == 7.07
        assert m.asset.num_trades_24h == 14
        assert m.asset.num_trade_records_24h == 7
        assert m.volume24h_xlm == 700

    @pytest.mark.asyncio
    async def test_xlm_base_leg_inverts_price(self, logger, prices):
        key = ("XLM-native", str(USD))
        ledger = FakeLedger(
            books={key: book([(0.50, 100)], [(0.52, 100)])},
            pages={key: page([0.5] * 3, base_volume=10)},
        )
        m = await computer(ledger, prices, logger).compute("XLM/USD", Pair(base=XLM, counter=USD))

        assert m.native_leg == NativeLeg.BASE
        assert m.asset.price_xlm == 1.961
        assert m.asset.volume24h_xlm == 30
        # Fewer than 7 buckets
        assert m.asset.change24h_xlm is None
        assert m.asset.change24h_usd is None

    @pytest.mark.asyncio
    async def test_trade_window_request(self, logger, prices):
        key = ("XLM-native", str(USD))
        ledger = FakeLedger(books={key: book([(0.5, 1)], [(0.52, 1)])})
        await computer(ledger, prices, logger).compute("XLM/USD", Pair(base=XLM, counter=USD))

        call = ledger.page_calls[0]
        assert call["end_ms"] - call["start_ms"] == 86_400_000
        assert call["resolution_ms"] == 900_000
        assert call["limit"] == 200
        assert call["order"] == "desc"

    @pytest.mark.asyncio
    async def test_pair_without_xlm_gets_book_fields_only(self, logger, prices):
        key = (str(USD), str(EURT))
        ledger = FakeLedger(books={key: book([(0.9, 5)], [(1.1, 5)])})
        m = await computer(ledger, prices, logger).compute("USD/EURT", Pair(base=USD, counter=EURT))

        assert m.book.price == 1.0
        assert m.asset is None
        assert ledger.page_calls == []

    @pytest.mark.asyncio
    async def test_empty_book_skips_trade_window(self, logger, prices):
        ledger = FakeLedger()
        m = await computer(ledger, prices, logger).compute("USD/XLM", Pair(base=USD, counter=XLM))

        assert m.book is None
        assert m.asset_ref == USD
        assert ledger.page_calls == []

    @pytest.mark.asyncio
    async def test_failures_become_outcomes(self, logger, prices):
        ledger = FakeLedger(
            books={
                (str(USD), "XLM-native"): SourceError("horizon /order_book", "HTTP 500"),
                ("XLM-native", str(EURT)): book([(1, 1)], [(1, 1)]),
            }
        )
        outcomes = await computer(ledger, prices, logger).compute_all(
            {"a": Pair(base=USD, counter=XLM), "b": Pair(base=XLM, counter=EURT)}
        )

        assert [o.slug for o in outcomes] == ["a", "b"]
        assert outcomes[0].failed and isinstance(outcomes[0].error, SourceError)
        assert not outcomes[1].failed


class TestApplyPairMetrics:
    @pytest.mark.asyncio
    async def test_reducer_fills_pairs_assets_and_native_totals(self, ledger, logger, prices):
        pairs = {
            "XLM-native/USD-anchor.com": Pair(base=XLM, counter=USD),
            "EURT-tempo.eu.com/XLM-native": Pair(base=EURT, counter=XLM),
        }
        ticker = Ticker(
            meta=TickerMeta(start=0, start_iso="", external_prices=prices),
            assets=[
                Asset(id=NATIVE_ASSET_ID, code="XLM", slug=NATIVE_ASSET_ID),
                Asset(id="USD-anchor.com", code="USD", issuer=USD.issuer, slug="USD-anchor.com"),
                Asset(id="EURT-tempo.eu.com", code="EURT", issuer=EURT.issuer, slug="EURT-tempo.eu.com"),
            ],
            pairs=pairs,
        )
        outcomes = await computer(ledger, prices, logger).compute_all(pairs)
        apply_pair_metrics(ticker, [o.metrics for o in outcomes], logger)

        native, usd, eurt = ticker.assets
        assert usd.top_trade_pair_slug == "XLM-native/USD-anchor.com"
        assert usd.volume24h_xlm == 700
        assert eurt.price_xlm == 9.5
        assert eurt.depth10_xlm == 40
        assert ticker.pairs["EURT-tempo.eu.com/XLM-native"].depth10_amount == 40

        assert native.volume24h_xlm == 1100
        assert native.volume24h_usd == pytest.approx(11.11)
        assert native.num_trades_24h == 7 * 2 + 8 * 3
