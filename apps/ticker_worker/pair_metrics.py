# apps/ticker_worker/pair_metrics.py

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, List, Tuple

import polars as pl
from pydantic import BaseModel, ConfigDict

from packages.contracts.payloads import (
    AssetRef,
    OrderBook,
    OrderBookLevel,
    TradeAggregationPage,
)
from packages.contracts.schemas import ExternalPrices, Pair, Ticker
from packages.contracts.vocabulary.general import (
    NATIVE_ASSET_ID,
    NativeLeg,
    TradeOrder,
)
from packages.ticker_lib.config import settings
from packages.ticker_lib.config.ledger import LedgerConfig
from packages.ticker_lib.date_utils import to_epoch_ms, utc_now
from packages.ticker_lib.interfaces import LedgerSource
from packages.ticker_lib.numeric import median_of_3, nice_round, round_half_up

# Below this many buckets the 24h change is not reported
MIN_BUCKETS_FOR_CHANGE = 7
DEPTH_BAND = 0.1
WIDE_SPREAD = 0.4

LEVEL_SCHEMA = {"price": pl.Float64, "amount": pl.Float64}
BUCKET_SCHEMA = {
    "close": pl.Float64,
    "base_volume": pl.Float64,
    "counter_volume": pl.Float64,
    "trade_count": pl.Int64,
}


class OrderBookMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    bid: float
    ask: float
    spread: float
    price: float
    depth10_amount: float
    num_bids: int
    num_asks: int


class AssetMetrics(BaseModel):
    """Market fields of the non-native leg. Names match `Asset` attributes."""

    model_config = ConfigDict(frozen=True)

    price_xlm: float
    price_usd: float
    change24h_xlm: float | None
    change24h_usd: float | None
    volume24h_xlm: float
    volume24h_usd: float
    depth10_xlm: float
    depth10_usd: float
    num_trades_24h: int
    num_trade_records_24h: int
    num_bids: int
    num_asks: int
    spread: float


class PairMetrics(BaseModel):
    """Immutable result of one pair task. Merged into the ticker by apply_pair_metrics."""

    model_config = ConfigDict(frozen=True)

    slug: str
    native_leg: NativeLeg
    asset_ref: AssetRef | None = None  # The non-native leg, when the other is XLM
    book: OrderBookMetrics | None = None
    volume24h_xlm: float | None = None
    num_trades_24h: int | None = None
    asset: AssetMetrics | None = None


@dataclass(frozen=True)
class PairOutcome:
    slug: str
    metrics: PairMetrics | None = None
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class TradeWindow:
    num_buckets: int
    base_volume: float
    counter_volume: float
    num_trades: int
    oldest_closes: Tuple[float, ...]


def native_leg(pair: Pair) -> NativeLeg:
    if pair.base.is_native:
        return NativeLeg.BASE
    if pair.counter.is_native:
        return NativeLeg.COUNTER
    return NativeLeg.NONE


def _levels_frame(levels: List[OrderBookLevel]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "price": [level.price for level in levels],
            "amount": [level.amount for level in levels],
        },
        schema=LEVEL_SCHEMA,
    )


def depth_band_sums(
    book: OrderBook, price: float, band: float = DEPTH_BAND
) -> Tuple[float, float]:
    """Bid amounts within `band` below price, ask amounts within `band` above."""
    bids = _levels_frame(book.bids)
    asks = _levels_frame(book.asks)

    bid_sum = bids.filter(pl.col("price") / price >= 1 - band)["amount"].sum()
    ask_sum = asks.filter(pl.col("price") / price <= 1 + band)["amount"].sum()
    return float(bid_sum or 0.0), float(ask_sum or 0.0)


def order_book_metrics(book: OrderBook, leg: NativeLeg) -> OrderBookMetrics | None:
    """
    None when the pair has no tradable price yet: either side is empty, or the
    best prices round to zero at 7 decimals (dust markets).
    """
    if not book.bids or not book.asks:
        return None

    bid = round_half_up(book.bids[0].price, 7)
    ask = round_half_up(book.asks[0].price, 7)
    if ask <= 0:
        return None

    spread = round_half_up(1 - bid / ask, 4)
    price = round_half_up((bid + ask) / 2, 7)

    # An illiquid ask tail would drag the midpoint up
    if spread > WIDE_SPREAD and leg == NativeLeg.COUNTER:
        price = bid
    if price <= 0:
        return None

    bid_sum, ask_sum = depth_band_sums(book, price)

    return OrderBookMetrics(
        bid=bid,
        ask=ask,
        spread=spread,
        price=price,
        # The min so an issuer cannot game it with a one-sided wall
        depth10_amount=round_half_up(min(bid_sum, ask_sum), 0),
        num_bids=len(book.bids),
        num_asks=len(book.asks),
    )


def trade_window(page: TradeAggregationPage) -> TradeWindow:
    frame = pl.DataFrame(
        {
            "close": [r.close for r in page.records],
            "base_volume": [r.base_volume for r in page.records],
            "counter_volume": [r.counter_volume for r in page.records],
            "trade_count": [r.trade_count for r in page.records],
        },
        schema=BUCKET_SCHEMA,
    )
    totals = frame.select(
        pl.col("base_volume").sum(),
        pl.col("counter_volume").sum(),
        pl.col("trade_count").sum(),
    ).row(0)

    # Newest-first pages keep the oldest buckets at the tail
    closes = frame["close"]
    oldest = closes.head(3) if page.order == TradeOrder.ASC else closes.tail(3)

    return TradeWindow(
        num_buckets=frame.height,
        base_volume=float(totals[0] or 0.0),
        counter_volume=float(totals[1] or 0.0),
        num_trades=int(totals[2] or 0),
        oldest_closes=tuple(oldest.to_list()),
    )


def change_24h(
    open_xlm: float, close_xlm: float, prices: ExternalPrices
) -> Tuple[float | None, float | None]:
    """Percent change in XLM and in USD. USD also absorbs XLM's own 24h drift."""
    if open_xlm <= 0:
        return None, None

    open_usd = open_xlm * prices.usd_xlm_24h_ago
    close_usd = close_xlm * prices.usd_xlm
    change_xlm = round_half_up(100 * (close_xlm / open_xlm - 1), 2)
    change_usd = round_half_up(100 * (close_usd / open_usd - 1), 2)
    return change_xlm, change_usd


def asset_metrics(
    book: OrderBookMetrics, window: TradeWindow, leg: NativeLeg, prices: ExternalPrices
) -> AssetMetrics:
    """XLM-denominated metrics for the non-native leg of an XLM pair."""
    open_close = (
        median_of_3(*window.oldest_closes)
        if window.num_buckets >= MIN_BUCKETS_FOR_CHANGE
        else None
    )
    enough_history = open_close is not None and open_close > 0
    change_xlm = change_usd = None

    if leg == NativeLeg.BASE:
        # Book is quoted in the counter asset per XLM -> invert
        price_xlm = 1 / book.price
        volume_xlm = window.base_volume
        if enough_history:
            open_xlm = 1 / open_close
            change_xlm, change_usd = change_24h(open_xlm, price_xlm, prices)
    else:
        price_xlm = book.price
        volume_xlm = window.counter_volume
        if enough_history:
            open_xlm = open_close
            change_xlm, change_usd = change_24h(open_xlm, price_xlm, prices)

    volume24h_xlm = nice_round(volume_xlm)
    depth10_xlm = nice_round(book.depth10_amount)

    return AssetMetrics(
        price_xlm=nice_round(price_xlm),
        price_usd=nice_round(price_xlm * prices.usd_xlm),
        change24h_xlm=change_xlm,
        change24h_usd=change_usd,
        volume24h_xlm=volume24h_xlm,
        volume24h_usd=nice_round(volume24h_xlm * prices.usd_xlm),
        depth10_xlm=depth10_xlm,
        depth10_usd=nice_round(depth10_xlm * prices.usd_xlm),
        num_trades_24h=window.num_trades,
        num_trade_records_24h=window.num_buckets,
        num_bids=book.num_bids,
        num_asks=book.num_asks,
        spread=book.spread,
    )


class PairMetricsComputer:
    """
    Phase 3 worker. One independent task per pair, each returning an
    immutable PairMetrics. Nothing here touches the ticker document.
    """

    def __init__(
        self,
        ledger: LedgerSource,
        prices: ExternalPrices,
        logger,
        config: LedgerConfig | None = None,
        clock: Callable = utc_now,
    ):
        self.ledger = ledger
        self.prices = prices
        self.logger = logger
        self.config = config or settings.ledger
        self.clock = clock

    async def compute(self, slug: str, pair: Pair) -> PairMetrics:
        leg = native_leg(pair)
        asset_ref = {
            NativeLeg.BASE: pair.counter,
            NativeLeg.COUNTER: pair.base,
        }.get(leg)

        book = await self.ledger.get_order_book(pair.base, pair.counter)
        book_metrics = order_book_metrics(book, leg)
        if book_metrics is None:
            self.logger.debug(f"{slug}: one-sided or dust order book, no price yet")
            return PairMetrics(slug=slug, native_leg=leg, asset_ref=asset_ref)

        if leg == NativeLeg.NONE:
            self.logger.warning(f"No support in ticker for pairs without XLM: {slug}")
            return PairMetrics(slug=slug, native_leg=leg, book=book_metrics)

        end = self.clock()
        start = end - timedelta(seconds=self.config.window_seconds)
        page = await self.ledger.get_trade_aggregations(
            pair.base,
            pair.counter,
            start_ms=to_epoch_ms(start),
            end_ms=to_epoch_ms(end),
            resolution_ms=self.config.resolution_ms,
            offset=0,
            limit=self.config.bucket_limit,
            order=TradeOrder.DESC,
        )
        window = trade_window(page)
        metrics = asset_metrics(book_metrics, window, leg, self.prices)

        self.logger.info(
            f"{slug:<40} {metrics.num_trades_24h:>6} trades "
            f"{metrics.price_xlm:>14} XLM ${metrics.price_usd:>9.2f} "
            f"Change XLM: {metrics.change24h_xlm}% Change USD: {metrics.change24h_usd}% "
            f"{window.num_buckets:>4} records"
        )

        return PairMetrics(
            slug=slug,
            native_leg=leg,
            asset_ref=asset_ref,
            book=book_metrics,
            volume24h_xlm=metrics.volume24h_xlm,
            num_trades_24h=metrics.num_trades_24h,
            asset=metrics,
        )

    async def _outcome(self, slug: str, pair: Pair) -> PairOutcome:
        try:
            return PairOutcome(slug=slug, metrics=await self.compute(slug, pair))
        except Exception as e:
            self.logger.error(f"Request failed for pair {slug}: {e!r}")
            return PairOutcome(slug=slug, error=e)

    async def compute_all(self, pairs: Dict[str, Pair]) -> List[PairOutcome]:
        """Fan out over every pair. Outcomes come back in `pairs` order."""
        return list(
            await asyncio.gather(
                *(self._outcome(slug, pair) for slug, pair in pairs.items())
            )
        )


def apply_pair_metrics(ticker: Ticker, results: List[PairMetrics], logger) -> None:
    """
    Single-writer reduction of Phase 3 results into the ticker, followed by the
    native asset's aggregate volume across every XLM pair.
    """
    volume_xlm = 0.0
    volume_usd = 0.0
    num_trades = 0

    for metrics in results:
        pair = ticker.pairs[metrics.slug]
        asset = ticker.find_asset(metrics.asset_ref) if metrics.asset_ref else None

        if metrics.asset_ref and asset is None:
            logger.warning(f"{metrics.slug}: asset {metrics.asset_ref} not in directory")
        if asset is not None:
            asset.top_trade_pair_slug = metrics.slug

        if metrics.book is not None:
            pair.bid = metrics.book.bid
            pair.ask = metrics.book.ask
            pair.spread = metrics.book.spread
            pair.price = metrics.book.price
            pair.depth10_amount = metrics.book.depth10_amount

        if metrics.asset is None:
            continue

        pair.volume24h_xlm = metrics.volume24h_xlm
        pair.num_trades_24h = metrics.num_trades_24h
        volume_xlm += metrics.asset.volume24h_xlm
        volume_usd += metrics.asset.volume24h_usd
        num_trades += metrics.asset.num_trades_24h

        if asset is not None:
            for name, value in metrics.asset.model_dump().items():
                setattr(asset, name, value)

    native = next((a for a in ticker.assets if a.id == NATIVE_ASSET_ID), None)
    if native is not None:
        native.volume24h_xlm = nice_round(volume_xlm)
        native.volume24h_usd = nice_round(volume_usd)
        native.num_trades_24h = num_trades
