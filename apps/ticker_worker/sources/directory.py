# apps/ticker_worker/sources/directory.py

import asyncio
import json
from pathlib import Path

from pydantic import ValidationError

from packages.contracts.payloads import DirectorySnapshot
from packages.ticker_lib.errors import SourceError
from packages.ticker_lib.http import HttpClient
from packages.ticker_lib.interfaces import DirectorySource


class RemoteDirectorySource(DirectorySource):
    """Directory document served over HTTP."""

    def __init__(self, http: HttpClient, url: str, logger=None):
        self.http = http
        self.url = url
        self.logger = logger

    async def initialize(self) -> DirectorySnapshot:
        if self.logger:
            self.logger.info(f"Loading asset directory from {self.url}")
        body = await self.http.get_json(self.url)
        try:
            return DirectorySnapshot.model_validate(body)
        except ValidationError as e:
            raise SourceError(self.url, f"Malformed directory: {e}")


class FileDirectorySource(DirectorySource):
    """Directory document on local disk (offline runs, fixtures)."""

    def __init__(self, path: str | Path, logger=None):
        self.path = Path(path)
        self.logger = logger

    async def initialize(self) -> DirectorySnapshot:
        if self.logger:
            self.logger.info(f"Loading asset directory from {self.path}")
        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            return DirectorySnapshot.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise SourceError(str(self.path), f"Unreadable directory: {e}")
