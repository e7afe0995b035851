from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict
from .base import EnvConfig


class PriceFeedConfig(EnvConfig):
    # BTC/USD reference sources
    coindesk_url: str = "https://api.coindesk.com/v1/bpi/currentprice.json"
    bitfinex_url: str = "https://api.bitfinex.com/v2/ticker/tBTCUSD"
    coinbase_url: str = "https://api.coinbase.com/v2/prices/spot?currency=USD"
    kraken_btc_url: str = "https://api.kraken.com/0/public/Ticker?pair=XBTUSD"

    # XLM/BTC exchange rate sources
    poloniex_url: str = "https://poloniex.com/public?command=returnTicker"
    bittrex_url: str = (
        "https://bittrex.com/api/v1.1/public/getticker?market=BTC-XLM"
    )
    kraken_xlm_url: str = "https://api.kraken.com/0/public/Ticker?pair=XLMXBT"

    # CoinMarketCap (24h change). Rate limited, needs an API key.
    cmc_url: str = (
        "https://pro-api.coinmarketcap.com/v1/cryptocurrency/quotes/latest"
    )
    cmc_symbol: str = "XLM"
    cmc_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("COIN_MARKET_CAP_KEY", "PRICES_CMC_API_KEY"),
    )
    cmc_retry_attempts: int = 10
    cmc_retry_delay_seconds: float = 1.0

    version_probe_url: str = "https://stellarterm.com/"

    model_config = SettingsConfigDict(
        env_prefix="PRICES_",
        case_sensitive=False,
        extra="ignore",
    )
