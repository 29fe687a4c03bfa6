"""API request validation utilities."""
import logging
import re
from fastapi import HTTPException

from fundsignal.services.data_aggregator import parse_ticker_list

logger = logging.getLogger(__name__)

# Valid tickers: 1-10 chars, letters, numbers, dots, dashes
# Examples: AAPL, BRK.B, BRK-B, MSFT
TICKER_PATTERN = re.compile(r'^[A-Z0-9.\-]{1,10}$')


def validate_ticker(ticker: str) -> str:
    """Validate and normalize ticker symbol.

    Args:
        ticker: Raw ticker string from request

    Returns:
        Validated and normalized ticker (uppercase, stripped)

    Raises:
        HTTPException: If ticker is invalid
    """
    if not ticker or not ticker.strip():
        raise HTTPException(status_code=400, detail="Ticker cannot be empty")

    ticker = ticker.upper().strip()

    if not TICKER_PATTERN.match(ticker):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid ticker format: '{ticker}'. Use 1-10 alphanumeric characters."
        )

    return ticker


def validate_ticker_list(raw: str, limit: int) -> list[str]:
    """Split a comma-separated ticker list, dedupe it and drop malformed symbols.

    Raises:
        HTTPException: If no valid ticker remains
    """
    tickers = []
    for ticker in parse_ticker_list(raw or ""):
        if TICKER_PATTERN.match(ticker):
            tickers.append(ticker)
        else:
            logger.warning(f"Dropping invalid ticker from batch: '{ticker}'")

    if not tickers:
        raise HTTPException(status_code=400, detail="tickers missing")
    return tickers[:limit]
