import asyncio
import logging

import httpx

from fundsignal.config import get_settings
from fundsignal.services.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class EdgarService:
    """SEC EDGAR client for the ticker directory and XBRL company facts. 10 req/sec limit."""

    BASE_URL = "https://data.sec.gov"
    TICKER_MAP_URL = "https://www.sec.gov/files/company_tickers.json"

    def __init__(self):
        settings = get_settings()
        self.user_agent = settings.edgar_user_agent
        self.timeout = settings.http_timeout
        self._semaphore = asyncio.Semaphore(5)

    async def _get(self, url: str) -> dict:
        async with self._semaphore:
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(
                        url,
                        headers={
                            "User-Agent": self.user_agent,
                            "Accept": "application/json",
                            "Accept-Encoding": "gzip, deflate",
                        },
                    )
            except httpx.HTTPError as e:
                logger.error(f"EDGAR error for {url}: {e}")
                raise UpstreamUnavailable(f"SEC request failed: {e}", source="sec") from e
            finally:
                await asyncio.sleep(0.1)  # respect rate limit

        if resp.status_code != 200:
            logger.warning(f"EDGAR {url} returned {resp.status_code}")
            raise UpstreamUnavailable(
                f"SEC HTTP {resp.status_code}", source="sec", status_code=resp.status_code
            )
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"SEC returned invalid JSON for {url}", source="sec") from e

    async def get_ticker_directory(self) -> dict:
        """Bulk {"0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."}, ...} listing."""
        return await self._get(self.TICKER_MAP_URL)

    async def get_company_facts(self, cik10: str) -> dict:
        return await self._get(f"{self.BASE_URL}/api/xbrl/companyfacts/CIK{cik10}.json")
