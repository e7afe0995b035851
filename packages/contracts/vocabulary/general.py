from enum import Enum


class StrEnum(str, Enum):
    """Base class to make enums behave like strings for easy use in Pydantic/JSON."""

    def __str__(self):
        return self.value


NATIVE_ASSET_CODE = "XLM"
NATIVE_ASSET_ID = "XLM-native"
NATIVE_ASSET_WEBSITE = "https://www.stellar.org/lumens/"
API_LICENSE = "Apache-2.0"


class TickerState(StrEnum):
    """Outcome published in the status artifact."""

    SUCCESS = "success"
    FAILED = "failed"


class NativeLeg(StrEnum):
    """Which side of a pair holds the native asset."""

    BASE = "base"
    COUNTER = "counter"
    NONE = "none"  # Pair is recorded, but no trade metrics are derived


class TradeOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"  # Newest bucket first


class Artifact(StrEnum):
    """Relative paths of the files a run publishes."""

    TICKER = "v1/ticker.json"
    STATE = "v1/ticker-state.json"
