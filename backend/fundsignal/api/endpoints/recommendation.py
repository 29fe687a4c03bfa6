from fastapi import APIRouter, Depends, HTTPException, Query

from fundsignal.api.dependencies import get_aggregator
from fundsignal.api.validation import validate_ticker, validate_ticker_list
from fundsignal.schemas.recommendation import Recommendation, RecommendationBatch
from fundsignal.services.data_aggregator import FinancialsAggregator
from fundsignal.services.errors import UpstreamUnavailable

router = APIRouter(prefix="/api", tags=["recommendation"])


@router.get("/stock/{ticker}/recommendation", response_model=Recommendation)
async def get_recommendation(
    ticker: str,
    aggregator: FinancialsAggregator = Depends(get_aggregator),
):
    ticker = validate_ticker(ticker)
    try:
        return await aggregator.get_recommendation(ticker)
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=502, detail=f"recommendation failed: {e}")


@router.get("/recommendations", response_model=RecommendationBatch)
async def get_recommendations(
    tickers: str = Query("", description="Comma-separated ticker list, e.g. AAPL,MSFT"),
    aggregator: FinancialsAggregator = Depends(get_aggregator),
):
    """Score several tickers at once; tickers whose upstream calls fail are left out."""
    symbols = validate_ticker_list(tickers, aggregator.batch_max_tickers)
    return await aggregator.get_recommendations(symbols)
