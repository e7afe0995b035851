# packages/ticker_lib/config/base.py

import os
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Repository root: packages/ticker_lib/config/base.py -> 3 levels up
PROJECT_ROOT = Path(__file__).resolve().parents[3]

# Cron deployments point this at a secrets file outside the checkout
ENV_FILE = Path(os.environ.get("TICKER_ENV_FILE", PROJECT_ROOT / ".env"))


class EnvConfig(BaseSettings):
    """
    Shared base for every ticker config section.
    Values come from the process environment first, then ENV_FILE.
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )
