from pydantic_settings import SettingsConfigDict
from .base import EnvConfig


class LedgerConfig(EnvConfig):
    horizon_url: str = "https://horizon.stellar.org"

    # Concurrency Control
    max_concurrent_requests: int = 10
    rate_limit_per_second: int = 20

    # Trade Aggregation Window
    window_seconds: int = 86_400  # 24h
    resolution_ms: int = 900_000  # 15 minute buckets
    bucket_limit: int = 200

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",  # LEDGER_HORIZON_URL, LEDGER_BUCKET_LIMIT, etc.
        case_sensitive=False,
        extra="ignore",
    )
