from typing import Literal
from pydantic_settings import SettingsConfigDict
from .base import EnvConfig


class DirectoryConfig(EnvConfig):
    source: Literal["remote", "file"] = "remote"

    # Remote: JSON document listing assets, anchors and pairs
    url: str = "https://api.stellarterm.com/v1/directory.json"

    # File: same document on local disk
    path: str = "directory.json"

    model_config = SettingsConfigDict(
        env_prefix="DIRECTORY_",
        case_sensitive=False,
        extra="ignore",
    )
