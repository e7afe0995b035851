from pydantic_settings import SettingsConfigDict
from .base import EnvConfig


class HttpConfig(EnvConfig):
    # Applied to every outbound request
    timeout_seconds: float = 30.0
    user_agent: str = "StellarTerm-Ticker"

    model_config = SettingsConfigDict(
        env_prefix="HTTP_",  # HTTP_TIMEOUT_SECONDS, HTTP_USER_AGENT
        case_sensitive=False,
        extra="ignore",
    )
