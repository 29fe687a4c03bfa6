from fastapi import APIRouter, Depends, HTTPException

from fundsignal.api.dependencies import get_aggregator
from fundsignal.api.validation import validate_ticker
from fundsignal.schemas.financials import FinancialsPayload
from fundsignal.services.data_aggregator import FinancialsAggregator
from fundsignal.services.errors import UpstreamUnavailable

router = APIRouter(prefix="/api/stock", tags=["financials"])


@router.get("/{ticker}/financials", response_model=FinancialsPayload)
async def get_financials(
    ticker: str,
    aggregator: FinancialsAggregator = Depends(get_aggregator),
):
    ticker = validate_ticker(ticker)
    try:
        return await aggregator.get_financials(ticker)
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=502, detail=str(e))
