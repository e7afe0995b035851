# packages/ticker_lib/http.py

import json
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import aiohttp

from packages.ticker_lib.config import settings
from packages.ticker_lib.config.http import HttpConfig
from packages.ticker_lib.errors import SourceError


class HttpClient:
    """
    Thin wrapper over a shared aiohttp session.
    Every call carries the configured timeout; any HTTP status >= 400 or
    undecodable body raises SourceError.
    """

    def __init__(self, session: aiohttp.ClientSession, config: HttpConfig | None = None):
        self.session = session
        self.config = config or settings.http
        self.timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

    def _headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = {"User-Agent": self.config.user_agent}
        if headers:
            merged.update(headers)
        return merged

    async def get_text(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        async with self.session.get(
            url, params=params, headers=self._headers(headers), timeout=self.timeout
        ) as response:
            text = await response.text()
            if response.status >= 400:
                raise SourceError(url, f"HTTP {response.status}: {text[:100]}")
            return text

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        text = await self.get_text(url, params=params, headers=headers)
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            raise SourceError(url, f"Invalid JSON response: {text[:100]}...")


@asynccontextmanager
async def open_http_client(config: HttpConfig | None = None):
    """One session per run, closed when the run ends."""
    async with aiohttp.ClientSession() as session:
        yield HttpClient(session, config)
