"""
Metrics derived from the reconciled annual series.

revenue_cagr: compound growth oldest -> latest when three years are present,
    simple YoY from the two most recent years otherwise.
op_margin / fcf_margin: latest year, over latest revenue.
fcf_trend: |latest FCF| vs |previous FCF|, +/-5% band for FLAT.

Every metric is None when its inputs are missing; 0 is never used as "unknown".
"""
import math

from fundsignal.analysis.grading import is_num
from fundsignal.schemas.financials import AnnualRow

TREND_BAND = 0.05


def calc_cagr(first: float, last: float, years: int) -> float | None:
    if not is_num(first) or not is_num(last) or first <= 0 or last <= 0 or years <= 0:
        return None
    try:
        cagr = (last / first) ** (1 / years) - 1
        if math.isnan(cagr) or math.isinf(cagr):
            return None
        return cagr
    except (ValueError, ZeroDivisionError, OverflowError):
        return None


def calc_revenue_cagr(rows: list[AnnualRow]) -> float | None:
    if len(rows) < 2:
        return None
    oldest, prev, latest = rows[0], rows[-2], rows[-1]

    if len(rows) >= 3 and is_num(oldest.revenue) and is_num(latest.revenue):
        return calc_cagr(oldest.revenue, latest.revenue, len(rows) - 1)

    # YoY is the one-interval CAGR
    if is_num(prev.revenue) and is_num(latest.revenue):
        return calc_cagr(prev.revenue, latest.revenue, 1)
    return None


def calc_margin(numerator: float | None, revenue: float | None) -> float | None:
    if not is_num(numerator) or not is_num(revenue) or revenue == 0:
        return None
    return numerator / revenue


def classify_trend(previous: float, latest: float) -> str:
    change = latest / previous - 1
    if change > TREND_BAND:
        return "UP"
    if change < -TREND_BAND:
        return "DOWN"
    return "FLAT"


def calc_fcf_trend(rows: list[AnnualRow]) -> str:
    if len(rows) < 2:
        return "N/A"
    prev, latest = rows[-2], rows[-1]
    if not is_num(prev.fcf) or not is_num(latest.fcf) or prev.fcf == 0:
        return "N/A"
    # magnitudes only; sign flips are ignored
    return classify_trend(abs(prev.fcf), abs(latest.fcf))
