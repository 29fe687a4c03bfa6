"""
XBRL-to-row converters for SEC EDGAR and Finnhub annual financial data.

Both produce the same shape: at most three AnnualRow objects, ascending by
fiscal year, with revenue, operating income and free cash flow, plus a
coverage flag per field.

Free cash flow = operating cash flow - abs(capital expenditure). Capex is a
cash outflow but filers tag it with either sign, so the magnitude is used.
Missing either side leaves FCF unknown for that year.

Tie-breaks differ between the two sources:
  EDGAR   - several FY points for the same fiscal year: the latest `filed` date wins
  Finnhub - several FY reports for the same year: the first one in the response wins
"""
import logging

from fundsignal.analysis.grading import is_num
from fundsignal.schemas.financials import AnnualRow, ExtractedSeries, FieldCoverage, RowMeta

logger = logging.getLogger(__name__)

MAX_YEARS = 3

# XBRL concept mapping, companies use different GAAP tags
REVENUE_CONCEPTS = [
    "us-gaap_Revenues",
    "us-gaap_RevenueFromContractWithCustomerExcludingAssessedTax",
    "us-gaap_SalesRevenueNet",
]
OPERATING_INCOME_CONCEPTS = [
    "us-gaap_OperatingIncomeLoss",
]
OPERATING_CASH_FLOW_CONCEPTS = [
    "us-gaap_NetCashProvidedByUsedInOperatingActivities",
]
CAPEX_CONCEPTS = [
    "us-gaap_PaymentsToAcquirePropertyPlantAndEquipment",
]


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def compute_fcf(cfo: float | None, capex: float | None) -> float | None:
    if not is_num(cfo) or not is_num(capex):
        return None
    fcf = cfo - abs(capex)
    return fcf if is_num(fcf) else None


def _build_rows(
    years: list[int],
    revenue: dict[int, float],
    op_income: dict[int, float],
    cfo: dict[int, float],
    capex: dict[int, float],
    source: str,
) -> ExtractedSeries:
    rows = []
    for year in sorted(years)[-MAX_YEARS:]:
        rev = revenue.get(year)
        op = op_income.get(year)
        fcf = compute_fcf(cfo.get(year), capex.get(year))
        rows.append(AnnualRow(
            year=year,
            revenue=rev,
            op_income=op,
            fcf=fcf,
            meta=RowMeta(
                revenue_source=source if rev is not None else "none",
                op_income_source=source if op is not None else "none",
                fcf_source=source if fcf is not None else "none",
            ),
        ))

    coverage = FieldCoverage(
        revenue=any(r.revenue is not None for r in rows),
        op_income=any(r.op_income is not None for r in rows),
        fcf=any(r.fcf is not None for r in rows),
    )
    return ExtractedSeries(rows=rows, coverage=coverage)


# ── SEC EDGAR ────────────────────────────────────────────────────────

def _edgar_annual_by_fy(us_gaap: dict, concept: str) -> dict[int, float]:
    """FY -> value for one concept, USD annual (fp == "FY") points, latest filing wins."""
    concept_data = _as_dict(us_gaap.get(concept.replace("us-gaap_", "")))
    points = _as_list(_as_dict(concept_data.get("units")).get("USD"))

    annual = [
        p for p in points
        if isinstance(p, dict) and p.get("fp") == "FY" and is_num(p.get("val")) and is_num(p.get("fy"))
    ]
    # Sort by filed date so the last write per FY is the most recently filed one
    annual.sort(key=lambda p: str(p.get("filed") or ""))

    out: dict[int, float] = {}
    for p in annual:
        out[int(p["fy"])] = float(p["val"])
    return out


def _edgar_first_match(us_gaap: dict, concepts: list[str]) -> dict[int, float]:
    """Merge concept series per year, earlier concepts in the list taking priority."""
    merged: dict[int, float] = {}
    for concept in concepts:
        for year, val in _edgar_annual_by_fy(us_gaap, concept).items():
            merged.setdefault(year, val)
    return merged


def extract_edgar_annual(facts: dict) -> ExtractedSeries:
    """
    Parse a SEC EDGAR companyfacts payload into annual rows.

    The facts response structure:
    {
        "facts": {
            "us-gaap": {
                "Revenues": {
                    "units": {
                        "USD": [
                            {"fy": 2023, "fp": "FY", "form": "10-K", "filed": "2023-11-03", "val": 383285000000},
                            ...
                        ]
                    }
                },
                ...
            }
        }
    }
    """
    # malformed payloads at any level yield no rows
    us_gaap = _as_dict(_as_dict(_as_dict(facts).get("facts")).get("us-gaap"))
    if not us_gaap:
        return ExtractedSeries()

    revenue = _edgar_first_match(us_gaap, REVENUE_CONCEPTS)
    op_income = _edgar_first_match(us_gaap, OPERATING_INCOME_CONCEPTS)
    cfo = _edgar_first_match(us_gaap, OPERATING_CASH_FLOW_CONCEPTS)
    capex = _edgar_first_match(us_gaap, CAPEX_CONCEPTS)

    years = set(revenue) | set(op_income) | set(cfo) | set(capex)
    result = _build_rows(list(years), revenue, op_income, cfo, capex, source="sec")
    logger.debug(f"Parsed {len(result.rows)} fiscal years from EDGAR company facts")
    return result


# ── Finnhub ──────────────────────────────────────────────────────────

def _first_match(section: list, concepts: list[str]) -> float | None:
    """Return the value for the first matching XBRL concept found in a report section."""
    values = {}
    for item in section:
        if not isinstance(item, dict):
            continue
        concept = item.get("concept")
        if concept and concept not in values:
            values[concept] = item.get("value")
    for concept in concepts:
        val = values.get(concept)
        if is_num(val):
            return float(val)
    return None


def extract_finnhub_annual(reports: list[dict]) -> ExtractedSeries:
    """
    Parse Finnhub /stock/financials-reported `data` entries into annual rows.

    Only `period == "FY"` entries are read. Income statement concepts come from
    report["ic"], cash flow concepts from report["cf"].
    """
    by_year: dict[int, dict] = {}
    for entry in _as_list(reports):
        if not isinstance(entry, dict):
            continue
        year = entry.get("year")
        if not is_num(year) or str(entry.get("period") or "") != "FY":
            continue
        # take first FY report for the year
        by_year.setdefault(int(year), entry)

    revenue: dict[int, float] = {}
    op_income: dict[int, float] = {}
    cfo: dict[int, float] = {}
    capex: dict[int, float] = {}

    for year, entry in by_year.items():
        report = _as_dict(entry.get("report"))
        ic = _as_list(report.get("ic"))
        cf = _as_list(report.get("cf"))

        for target, section, concepts in (
            (revenue, ic, REVENUE_CONCEPTS),
            (op_income, ic, OPERATING_INCOME_CONCEPTS),
            (cfo, cf, OPERATING_CASH_FLOW_CONCEPTS),
            (capex, cf, CAPEX_CONCEPTS),
        ):
            val = _first_match(section, concepts)
            if val is not None:
                target[year] = val

    result = _build_rows(list(by_year), revenue, op_income, cfo, capex, source="finnhub")
    logger.debug(f"Parsed {len(result.rows)} fiscal years from Finnhub financials-reported")
    return result
