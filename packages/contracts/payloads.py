# packages/contracts/payloads.py
"""
Shapes of the data handed to the pipeline by its collaborators
(ledger query service, asset directory). Adapters normalize raw
responses into these models; numeric strings are coerced to floats.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Dict, List

from .vocabulary.general import NATIVE_ASSET_CODE


class AssetRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    issuer: str | None = None

    @property
    def is_native(self) -> bool:
        return self.code == NATIVE_ASSET_CODE and self.issuer is None

    @property
    def asset_type(self) -> str:
        if self.is_native:
            return "native"
        return "credit_alphanum4" if len(self.code) <= 4 else "credit_alphanum12"

    def __str__(self):
        return "XLM-native" if self.is_native else f"{self.code}-{self.issuer}"


# --- Ledger Query Service ---


class RootStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    core_latest_ledger: int
    network_passphrase: str


class OrderBookLevel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    price: float
    amount: float


class OrderBook(BaseModel):
    """Bids best-first (highest price), asks best-first (lowest price)."""

    model_config = ConfigDict(extra="ignore")

    bids: List[OrderBookLevel] = []
    asks: List[OrderBookLevel] = []


class TradeBucket(BaseModel):
    model_config = ConfigDict(extra="ignore")

    close: float
    base_volume: float
    counter_volume: float
    trade_count: int


class TradeAggregationPage(BaseModel):
    records: List[TradeBucket] = []
    limit: int | None = None
    order: str | None = None


# --- Directory Service ---


class DirectoryAsset(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    issuer: str | None = None
    domain: str


class DirectoryAnchor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    website: str | None = None


class DirectoryPair(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    base: AssetRef = Field(alias="baseBuying")
    counter: AssetRef = Field(alias="counterSelling")


class DirectorySnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    assets: Dict[str, DirectoryAsset] = {}
    anchors: Dict[str, DirectoryAnchor] = {}
    pairs: Dict[str, DirectoryPair] = {}
    build_id: str | None = Field(
        default=None, validation_alias=AliasChoices("build_id", "buildId", "buildID")
    )
