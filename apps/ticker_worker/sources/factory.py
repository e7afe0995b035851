# apps/ticker_worker/sources/factory.py

from dataclasses import dataclass
from typing import List

from aiolimiter import AsyncLimiter

from packages.ticker_lib.config import Settings
from packages.ticker_lib.http import HttpClient
from packages.ticker_lib.interfaces import (
    DirectorySource,
    LedgerSource,
    PriceFeed,
    QuoteSource,
    VersionProbe,
)
from packages.ticker_lib.logging import LogManager
from .coinmarketcap import CoinMarketCapQuoteSource
from .directory import FileDirectorySource, RemoteDirectorySource
from .horizon import HorizonLedgerSource
from .price_feeds import build_btc_usd_feeds, build_xlm_btc_feeds
from .version_probe import StellarTermVersionProbe


@dataclass
class TickerSources:
    """Every collaborator one pipeline run talks to."""

    ledger: LedgerSource
    directory: DirectorySource
    btc_usd_feeds: List[PriceFeed]
    xlm_btc_feeds: List[PriceFeed]
    quote: QuoteSource
    version_probe: VersionProbe


def get_directory_source(
    source_name: str, http: HttpClient, settings: Settings, logger=None
) -> DirectorySource:
    """Factory to instantiate the directory source based on config / CLI argument."""

    if source_name == "remote":
        return RemoteDirectorySource(http, settings.directory.url, logger)

    elif source_name == "file":
        return FileDirectorySource(settings.directory.path, logger)

    else:
        raise ValueError(f"Unknown directory source: {source_name}")


def build_sources(
    http: HttpClient, settings: Settings, log_manager: LogManager
) -> TickerSources:
    feed_logger = log_manager.get_logger("price-feeds")
    limiter = AsyncLimiter(settings.ledger.rate_limit_per_second, 1)

    return TickerSources(
        ledger=HorizonLedgerSource(
            http,
            settings.ledger,
            app_name=settings.system.app_name,
            limiter=limiter,
            logger=log_manager.get_logger("horizon"),
        ),
        directory=get_directory_source(
            settings.directory.source,
            http,
            settings,
            log_manager.get_logger("directory"),
        ),
        btc_usd_feeds=build_btc_usd_feeds(http, feed_logger, settings.prices),
        xlm_btc_feeds=build_xlm_btc_feeds(http, feed_logger, settings.prices),
        quote=CoinMarketCapQuoteSource(http, settings.prices),
        version_probe=StellarTermVersionProbe(
            http, settings.prices.version_probe_url, log_manager.get_logger("version")
        ),
    )
