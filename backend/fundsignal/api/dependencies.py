from functools import lru_cache

from fundsignal.services.data_aggregator import FinancialsAggregator
from fundsignal.services.edgar_service import EdgarService
from fundsignal.services.finnhub_service import FinnhubService


@lru_cache
def get_aggregator() -> FinancialsAggregator:
    """Process-wide aggregator; its CIK directory and companyfacts caches live as long as the process."""
    return FinancialsAggregator(EdgarService(), FinnhubService())
