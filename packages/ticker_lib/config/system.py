from pydantic import Field
from .base import EnvConfig


class SystemConfig(EnvConfig):
    """
    General system-wide configuration.
    """

    # Maps to TICKER_ENV in .env
    environment: str = Field(validation_alias="TICKER_ENV", default="production")

    debug: bool = Field(validation_alias="DEBUG", default=False)
    project_name: str = "StellarTerm Ticker"
    version: str = "1.0.0"

    # Identifies this deployment to Horizon (sent as X-App-Name)
    app_name: str = Field(validation_alias="APP_NAME", default="stellarterm-ticker")
