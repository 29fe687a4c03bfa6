import logging
import re

from fundsignal.config import get_settings
from fundsignal.services.cache_manager import DirectoryCache
from fundsignal.services.edgar_service import EdgarService

logger = logging.getLogger(__name__)


def pad_cik10(cik: int | str) -> str:
    """320193 -> '0000320193'."""
    digits = re.sub(r"\D", "", str(cik))
    return digits.zfill(10)


def build_ticker_map(directory: dict) -> dict[str, str]:
    """Turn the SEC company_tickers.json listing into {TICKER: CIK10}."""
    ticker_map: dict[str, str] = {}
    for row in directory.values():
        if not isinstance(row, dict):
            continue
        ticker = row.get("ticker")
        cik = row.get("cik_str")
        if not ticker or cik is None:
            continue
        ticker_map[str(ticker).upper()] = pad_cik10(cik)
    return ticker_map


class CikResolver:
    """
    Maps ticker symbols to 10-digit CIKs.

    The directory is fetched wholesale and cached for `cik_map_ttl` seconds.
    A failed refresh raises UpstreamUnavailable; there is no fallback to a
    stale map.
    """

    def __init__(self, edgar: EdgarService, cache: DirectoryCache | None = None):
        self.edgar = edgar
        self.cache = cache or DirectoryCache(get_settings().cik_map_ttl)

    async def _load(self) -> dict[str, str]:
        directory = await self.edgar.get_ticker_directory()
        return build_ticker_map(directory)

    async def resolve(self, ticker: str) -> str | None:
        ticker_map = await self.cache.get_map(self._load)
        cik10 = ticker_map.get(ticker.strip().upper())
        if cik10 is None:
            logger.info(f"No CIK mapping for {ticker}")
        return cik10
