import asyncio
import logging
import time

import httpx

from fundsignal.analysis.grading import is_num
from fundsignal.config import get_settings
from fundsignal.schemas.financials import Multiples
from fundsignal.services.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple rate limiter for Finnhub: 60 calls/min."""

    def __init__(self, max_calls: int = 60, period: float = 60.0):
        self.max_calls = max_calls
        self.period = period
        self.calls: list[float] = []
        self._lock = asyncio.Lock()

    async def acquire(self):
        async with self._lock:
            now = time.monotonic()
            self.calls = [t for t in self.calls if now - t < self.period]
            if len(self.calls) >= self.max_calls:
                sleep_time = self.period - (now - self.calls[0])
                await asyncio.sleep(sleep_time)
            self.calls.append(time.monotonic())


def _multiple(value) -> float | None:
    """Keep a valuation multiple only if it is a finite, non-negative number."""
    if not is_num(value) or value < 0:
        return None
    return float(value)


class FinnhubService:
    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(self):
        settings = get_settings()
        self.api_key = settings.finnhub_api_key
        self.timeout = settings.http_timeout
        self.rate_limiter = RateLimiter(max_calls=settings.finnhub_calls_per_minute)
        self.enabled = bool(self.api_key)

    async def _get(self, endpoint: str, params: dict = None) -> dict:
        if not self.enabled:
            raise UpstreamUnavailable("FINNHUB_API_KEY is not configured", source="finnhub")
        await self.rate_limiter.acquire()
        params = dict(params or {})
        params["token"] = self.api_key
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(f"{self.BASE_URL}{endpoint}", params=params)
        except httpx.HTTPError as e:
            logger.error(f"Finnhub error for {endpoint}: {e}")
            raise UpstreamUnavailable(f"Finnhub request failed: {e}", source="finnhub") from e

        if resp.status_code != 200:
            logger.warning(f"Finnhub {endpoint} returned {resp.status_code}")
            raise UpstreamUnavailable(
                f"Finnhub {endpoint} HTTP {resp.status_code}",
                source="finnhub",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Finnhub returned invalid JSON for {endpoint}", source="finnhub") from e

    async def get_financials_reported(self, ticker: str) -> list[dict]:
        """Annual as-filed reports: [{"year": 2023, "period": "FY", "report": {"ic": [...], "cf": [...]}}, ...]."""
        result = await self._get("/stock/financials-reported", {"symbol": ticker, "freq": "annual"})
        data = result.get("data") if isinstance(result, dict) else None
        return data if isinstance(data, list) else []

    async def get_basic_financials(self, ticker: str) -> dict:
        return await self._get("/stock/metric", {"symbol": ticker, "metric": "all"})

    async def get_multiples(self, ticker: str) -> Multiples:
        result = await self.get_basic_financials(ticker)
        metric = result.get("metric") if isinstance(result, dict) else None
        metric = metric or {}
        return Multiples(pe=_multiple(metric.get("peTTM")), ps=_multiple(metric.get("psTTM")))
