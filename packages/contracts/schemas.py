# packages/contracts/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List

from .payloads import AssetRef
from .vocabulary.general import API_LICENSE, TickerState


class TickerDocument(BaseModel):
    """Snake_case in Python, original wire names in JSON."""

    model_config = ConfigDict(populate_by_name=True)


class LedgerMeta(TickerDocument):
    core_latest_ledger: int
    network_passphrase: str


class ExternalPrices(TickerDocument):
    usd_btc: float = Field(alias="USD_BTC")
    btc_xlm: float = Field(alias="BTC_XLM")
    usd_xlm: float = Field(alias="USD_XLM")  # round(usd_btc * btc_xlm, 6)
    usd_xlm_24h_ago: float = Field(alias="USD_XLM_24hAgo")
    usd_xlm_change: float | None = Field(default=None, alias="USD_XLM_change")


class TickerMeta(TickerDocument):
    start: int
    start_iso: str = Field(alias="startISO")
    api_license: str = Field(default=API_LICENSE, alias="apiLicense")
    horizon: LedgerMeta | None = None
    stellar_term_version: int = Field(default=-1, alias="stellarTermVersion")
    external_prices: ExternalPrices | None = Field(
        default=None, alias="externalPrices"
    )
    build_id: str | None = None


class Asset(TickerDocument):
    id: str
    code: str
    issuer: str | None = None
    domain: str | None = None
    slug: str
    website: str | None = None
    top_trade_pair_slug: str | None = Field(default=None, alias="topTradePairSlug")

    # Market fields (populated in Phase 3)
    price_xlm: float | None = Field(default=None, alias="price_XLM")
    price_usd: float | None = Field(default=None, alias="price_USD")
    change24h_xlm: float | None = Field(default=None, alias="change24h_XLM")
    change24h_usd: float | None = Field(default=None, alias="change24h_USD")
    volume24h_xlm: float | None = Field(default=None, alias="volume24h_XLM")
    volume24h_usd: float | None = Field(default=None, alias="volume24h_USD")
    depth10_xlm: float | None = Field(default=None, alias="depth10_XLM")
    depth10_usd: float | None = Field(default=None, alias="depth10_USD")
    num_trades_24h: int | None = Field(default=None, alias="numTrades24h")
    num_trade_records_24h: int | None = Field(
        default=None, alias="_numTradeRecords24h"
    )
    num_bids: int | None = Field(default=None, alias="numBids")
    num_asks: int | None = Field(default=None, alias="numAsks")
    spread: float | None = None

    # Ranking (populated in Phase 4)
    activity_score: float | None = Field(default=None, alias="activityScore")

    @property
    def ref(self) -> AssetRef:
        return AssetRef(code=self.code, issuer=self.issuer)


class Pair(TickerDocument):
    base: AssetRef = Field(alias="baseBuying")
    counter: AssetRef = Field(alias="counterSelling")

    bid: float | None = None
    ask: float | None = None
    spread: float | None = None
    price: float | None = None
    depth10_amount: float | None = Field(default=None, alias="depth10Amount")
    volume24h_xlm: float | None = Field(default=None, alias="volume24h_XLM")
    num_trades_24h: int | None = Field(default=None, alias="numTrades24h")


class Ticker(TickerDocument):
    """
    Root document of one run. `assets` order is the final ranking.
    Built fresh per invocation and never persisted incrementally.
    """

    meta: TickerMeta = Field(alias="_meta")
    assets: List[Asset] = []
    pairs: Dict[str, Pair] = {}

    def find_asset(self, ref: AssetRef) -> Asset | None:
        for asset in self.assets:
            if asset.code == ref.code and asset.issuer == ref.issuer:
                return asset
        return None

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


class TickerStatus(TickerDocument):
    ticker_state: TickerState = Field(alias="tickerState")
    error: Dict[str, Any] | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
