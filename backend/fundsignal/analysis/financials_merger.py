"""
Field-level reconciliation of Finnhub and SEC annual rows.

Years from both inputs are unioned and the three most recent kept. Each
field of each year is resolved on its own: preferred value if present and
finite, else fallback value, else unknown. A single year can therefore carry
Finnhub revenue next to SEC free cash flow; meta records which source won
for every field.
"""
from datetime import datetime, timezone

from fundsignal.analysis.grading import is_num
from fundsignal.schemas.financials import AnnualRow, FinancialsPayload, Multiples, RowMeta
from fundsignal.services.xbrl_mapper import MAX_YEARS

FIELDS = ("revenue", "op_income", "fcf")

NO_CIK_NOTE = "SEC has no CIK mapping for this ticker."
FCF_NOTE = "FCF is computed as CFO - abs(Capex)."
GAPS_NOTE = "Some fields may be unavailable depending on filing / tags."


def resolve_field(
    preferred: float | None,
    fallback: float | None,
    preferred_source: str,
    fallback_source: str,
) -> tuple[float | None, str]:
    """Prefer A, else B, else absent. Returns (value, provenance)."""
    if is_num(preferred):
        return preferred, preferred_source
    if is_num(fallback):
        return fallback, fallback_source
    return None, "none"


def merge_rows(
    preferred: list[AnnualRow],
    fallback: list[AnnualRow],
    preferred_source: str = "finnhub",
    fallback_source: str = "sec",
) -> list[AnnualRow]:
    by_year: dict[int, dict[str, AnnualRow]] = {}
    for row in preferred:
        by_year.setdefault(row.year, {})["preferred"] = row
    for row in fallback:
        by_year.setdefault(row.year, {})["fallback"] = row

    merged = []
    for year in sorted(by_year)[-MAX_YEARS:]:
        pair = by_year[year]
        a = pair.get("preferred")
        b = pair.get("fallback")

        values = {}
        sources = {}
        for field in FIELDS:
            value, source = resolve_field(
                getattr(a, field) if a else None,
                getattr(b, field) if b else None,
                preferred_source,
                fallback_source,
            )
            values[field] = value
            sources[f"{field}_source"] = source

        merged.append(AnnualRow(year=year, meta=RowMeta(**sources), **values))
    return merged


def build_source_note(finnhub_ok: bool, sec_ok: bool = True) -> str:
    parts = []
    if finnhub_ok:
        parts.append("Income/CF: Finnhub preferred, SEC used as fallback.")
    else:
        parts.append("Income/CF: SEC source (Finnhub unavailable).")
    if not sec_ok:
        parts.append("SEC unavailable; Finnhub figures only.")
    parts.append(FCF_NOTE)
    parts.append(GAPS_NOTE)
    return " ".join(parts)


def utc_now_iso(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def build_financials(
    ticker: str,
    finnhub_rows: list[AnnualRow],
    sec_rows: list[AnnualRow],
    multiples: Multiples | None = None,
    finnhub_ok: bool = False,
    sec_ok: bool = True,
    multiples_source: str | None = None,
) -> FinancialsPayload:
    return FinancialsPayload(
        ticker=ticker,
        generated_at_utc=utc_now_iso(),
        source_note=build_source_note(finnhub_ok, sec_ok),
        rows=merge_rows(finnhub_rows, sec_rows),
        multiples=multiples or Multiples(),
        multiples_source=multiples_source,
    )


def empty_financials(ticker: str) -> FinancialsPayload:
    """Soft-degraded series for tickers SEC cannot map to a CIK."""
    return FinancialsPayload(ticker=ticker, generated_at_utc=utc_now_iso(), source_note=NO_CIK_NOTE)
