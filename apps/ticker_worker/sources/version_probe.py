# apps/ticker_worker/sources/version_probe.py

import re

from packages.ticker_lib.http import HttpClient
from packages.ticker_lib.interfaces import VersionProbe

BUILD_INFO_RE = re.compile(r"stBuildInfo=\{version:(\d+)")


def parse_version(index_html: str) -> int:
    match = BUILD_INFO_RE.search(index_html)
    return int(match.group(1)) if match else -1


class StellarTermVersionProbe(VersionProbe):
    """Reads the version marker embedded in the stellarterm.com index page."""

    def __init__(self, http: HttpClient, url: str, logger):
        self.http = http
        self.url = url
        self.logger = logger

    async def fetch_version(self) -> int:
        self.logger.info(f"Fetching {self.url}")
        try:
            index_html = await self.http.get_text(self.url)
        except Exception as e:
            self.logger.error(f"StellarTerm version probe error: {e!r}")
            return -1

        version = parse_version(index_html)
        if version == -1:
            self.logger.error(f"Unable to find version marker on {self.url}")
        else:
            self.logger.info(f"{self.url} is at version {version}")
        return version
