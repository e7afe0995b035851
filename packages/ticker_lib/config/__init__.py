# packages/ticker_lib/config/__init__.py

from pydantic_settings import BaseSettings


# Import sub-configs
from .base import PROJECT_ROOT
from .system import SystemConfig
from .http import HttpConfig
from .ledger import LedgerConfig
from .directory import DirectoryConfig
from .prices import PriceFeedConfig
from .pipeline import PipelineConfig


class Settings(BaseSettings):
    # Composition: Grouping configs by domain
    system: SystemConfig = SystemConfig()
    http: HttpConfig = HttpConfig()
    ledger: LedgerConfig = LedgerConfig()
    directory: DirectoryConfig = DirectoryConfig()
    prices: PriceFeedConfig = PriceFeedConfig()
    pipeline: PipelineConfig = PipelineConfig()


# Singleton Instance
try:
    settings = Settings()
except Exception as e:
    print(f"CRITICAL: Config load failed. Details: {e}")
    raise e
