import asyncio
import logging
from dataclasses import dataclass

from fundsignal.analysis.financials_merger import build_financials, empty_financials, utc_now_iso
from fundsignal.analysis.recommendation_engine import score_financials
from fundsignal.config import get_settings
from fundsignal.schemas.financials import AnnualRow, FinancialsPayload, Multiples
from fundsignal.schemas.recommendation import Recommendation, RecommendationBatch
from fundsignal.services.cache_manager import TTLCache
from fundsignal.services.cik_resolver import CikResolver
from fundsignal.services.edgar_service import EdgarService
from fundsignal.services.errors import UpstreamUnavailable
from fundsignal.services.finnhub_service import FinnhubService
from fundsignal.services.xbrl_mapper import extract_edgar_annual, extract_finnhub_annual

logger = logging.getLogger(__name__)


@dataclass
class SecResult:
    cik_found: bool
    rows: list[AnnualRow]


@dataclass
class FinnhubResult:
    rows: list[AnnualRow]
    financials_ok: bool
    multiples: Multiples
    multiples_ok: bool


def parse_ticker_list(raw: str, limit: int | None = None) -> list[str]:
    """'aapl, msft,AAPL' -> ['AAPL', 'MSFT'], order kept, capped at `limit` when given."""
    seen: list[str] = []
    for part in raw.split(","):
        ticker = part.strip().upper()
        if ticker and ticker not in seen:
            seen.append(ticker)
    return seen[:limit]


class FinancialsAggregator:
    """
    Fetches both providers, reconciles them and scores the result.

    SEC path:     ticker -> CIK (directory cache) -> companyfacts (per-CIK cache) -> rows
    Finnhub path: financials-reported and metric, fetched concurrently

    The two paths run side by side. Finnhub failures degrade to SEC-only; SEC
    failures degrade to Finnhub-only. Only when neither source produced
    financials is UpstreamUnavailable raised.
    """

    def __init__(
        self,
        edgar: EdgarService,
        finnhub: FinnhubService,
        resolver: CikResolver | None = None,
        facts_cache: TTLCache | None = None,
    ):
        settings = get_settings()
        self.edgar = edgar
        self.finnhub = finnhub
        self.resolver = resolver or CikResolver(edgar)
        self.facts_cache = facts_cache or TTLCache(settings.company_facts_ttl)
        self.batch_max_tickers = settings.batch_max_tickers

    async def _sec_path(self, ticker: str) -> SecResult:
        cik10 = await self.resolver.resolve(ticker)
        if cik10 is None:
            return SecResult(cik_found=False, rows=[])
        facts = await self.facts_cache.get_or_fetch(cik10, self.edgar.get_company_facts)
        return SecResult(cik_found=True, rows=extract_edgar_annual(facts).rows)

    async def _finnhub_path(self, ticker: str) -> FinnhubResult:
        if not self.finnhub.enabled:
            return FinnhubResult(rows=[], financials_ok=False, multiples=Multiples(), multiples_ok=False)

        reports, multiples = await asyncio.gather(
            self.finnhub.get_financials_reported(ticker),
            self.finnhub.get_multiples(ticker),
            return_exceptions=True,
        )

        rows: list[AnnualRow] = []
        financials_ok = not isinstance(reports, BaseException)
        if financials_ok:
            rows = extract_finnhub_annual(reports).rows
        else:
            logger.warning(f"Finnhub financials failed for {ticker}: {reports}")

        multiples_ok = isinstance(multiples, Multiples)
        if not multiples_ok:
            logger.warning(f"Finnhub multiples failed for {ticker}: {multiples}")
            multiples = Multiples()

        return FinnhubResult(rows=rows, financials_ok=financials_ok, multiples=multiples, multiples_ok=multiples_ok)

    async def get_financials(self, ticker: str) -> FinancialsPayload:
        sec, fh = await asyncio.gather(
            self._sec_path(ticker),
            self._finnhub_path(ticker),
            return_exceptions=True,
        )
        # _finnhub_path catches its own upstream errors; anything else is a bug
        if isinstance(fh, BaseException):
            raise fh

        if isinstance(sec, SecResult) and not sec.cik_found:
            return empty_financials(ticker)

        sec_ok = isinstance(sec, SecResult)
        if not sec_ok:
            if not isinstance(sec, UpstreamUnavailable):
                raise sec
            logger.warning(f"SEC path failed for {ticker}: {sec}")
            if not fh.financials_ok:
                raise UpstreamUnavailable(
                    f"financials failed: SEC and Finnhub both unavailable for {ticker} ({sec})"
                )

        return build_financials(
            ticker,
            finnhub_rows=fh.rows,
            sec_rows=sec.rows if sec_ok else [],
            multiples=fh.multiples,
            finnhub_ok=fh.financials_ok,
            sec_ok=sec_ok,
            multiples_source="finnhub" if fh.multiples_ok else None,
        )

    async def get_recommendation(self, ticker: str) -> Recommendation:
        financials = await self.get_financials(ticker)
        return score_financials(financials)

    async def get_recommendations(self, tickers: list[str]) -> RecommendationBatch:
        limited = tickers[: self.batch_max_tickers]
        results = await asyncio.gather(
            *(self.get_recommendation(t) for t in limited),
            return_exceptions=True,
        )

        # one failing ticker never sinks the batch
        items = []
        for ticker, result in zip(limited, results):
            if isinstance(result, UpstreamUnavailable):
                logger.warning(f"Recommendation skipped for {ticker}: {result}")
                continue
            if isinstance(result, Exception):
                logger.error(f"Recommendation failed for {ticker}: {result}", exc_info=result)
                continue
            if isinstance(result, BaseException):
                raise result
            items.append(result)

        return RecommendationBatch(generated_at_utc=utc_now_iso(), count=len(items), items=items)
