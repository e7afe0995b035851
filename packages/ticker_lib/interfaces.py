# packages/ticker_lib/interfaces.py

from abc import ABC, abstractmethod
from typing import Any, Dict

from packages.contracts.payloads import (
    AssetRef,
    DirectorySnapshot,
    OrderBook,
    RootStatus,
    TradeAggregationPage,
)
from packages.contracts.vocabulary.general import TradeOrder


class LedgerSource(ABC):
    """
    Abstract Base Class for the ledger query service.
    Any new backend (Horizon mirror, local cache, etc.) must inherit from this.
    Failures raise; the pipeline decides whether they are fatal.
    """

    @abstractmethod
    async def get_root_status(self) -> RootStatus:
        pass

    @abstractmethod
    async def get_order_book(self, base: AssetRef, counter: AssetRef) -> OrderBook:
        pass

    @abstractmethod
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
        """
        Must return the bucketed trade history of the pair.
        With order=DESC, records[0] is the newest bucket.
        """
        pass


class DirectorySource(ABC):
    @abstractmethod
    async def initialize(self) -> DirectorySnapshot:
        """Must return the full asset / anchor / pair universe. Failures are fatal."""
        pass


class PriceFeed(ABC):
    """A single external price. Must never raise: failures resolve to None."""

    name: str

    @abstractmethod
    async def fetch_price(self) -> float | None:
        pass


class QuoteSource(ABC):
    @abstractmethod
    async def fetch_quote(self) -> Dict[str, Any]:
        """Raw quote response. May raise on transport errors."""
        pass


class VersionProbe(ABC):
    @abstractmethod
    async def fetch_version(self) -> int:
        """Deployed client version, or -1 when it cannot be determined."""
        pass
