"""
Recommendation engine - turns a reconciled 3-year series plus P/E and P/S into
a 0-100 score, a BUY/WATCH/HOLD/AVOID signal and a confidence level.

Components (missing inputs are skipped, not scored as zero):
  Growth  35  revenue CAGR, -20%..+30% -> 0..1
  Margin  35  op margin 0..25% -> 0..20 pts, FCF margin 0..20% -> 0..15 pts
  Value   30  P/E 10(best)..40(worst) -> 18 pts, P/S 1..12 -> 12 pts

score_norm  = 100 * raw / used_weight   (50 when nothing is usable)
coverage    = used_weight / 100
penalty     = 0.7 + 0.3 * coverage
score       = score_norm * penalty

Coverage below 0.6 forces the signal to WATCH so sparse data never produces a
strong BUY or AVOID call. The pre-override signal is kept as base_signal.

score_financials is a pure function of its input apart from the timestamp.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from fundsignal.analysis.derived_metrics import calc_fcf_trend, calc_margin, calc_revenue_cagr
from fundsignal.analysis.financials_merger import utc_now_iso
from fundsignal.analysis.grading import (
    clamp,
    coverage_to_confidence,
    is_num,
    round_half_up,
    scale_inverse,
    scale_linear,
    score_to_signal,
)
from fundsignal.schemas.financials import FinancialsPayload
from fundsignal.schemas.recommendation import (
    CoverageExplain,
    Diagnostics,
    GrowthExplain,
    MarginExplain,
    Recommendation,
    RecommendationExplain,
    RecommendationSource,
    RecommendationSummary,
    ScoreBreakdown,
    UsedComponents,
    ValueExplain,
)

logger = logging.getLogger(__name__)

WEIGHTS = {"growth": 35, "margin": 35, "value": 30}

GROWTH_RANGE = (-0.20, 0.30)
OP_MARGIN_RANGE, OP_MARGIN_POINTS = (0.0, 0.25), 20
FCF_MARGIN_RANGE, FCF_MARGIN_POINTS = (0.0, 0.20), 15
PE_RANGE, PE_POINTS = (10.0, 40.0), 18  # (best, worst)
PS_RANGE, PS_POINTS = (1.0, 12.0), 12

PS_MAX_COMPARABLE = 40
PE_MAX_COMPARABLE = 80

NEUTRAL_SCORE = 50
PENALTY_FLOOR = 0.7
PENALTY_SPAN = 0.3
LOW_CONF_COVERAGE = 0.6
VERY_LOW_COVERAGE = 0.35


@dataclass
class SanitizedMultiples:
    pe: float | None
    ps: float | None
    notes: list[str] = field(default_factory=list)


def sanitize_multiples(pe: float | None, ps: float | None) -> SanitizedMultiples:
    """Drop multiples too extreme to compare; the caller still reports the originals."""
    out = SanitizedMultiples(pe=pe if is_num(pe) else None, ps=ps if is_num(ps) else None)
    if out.ps is not None and out.ps > PS_MAX_COMPARABLE:
        out.notes.append("P/S is extremely high; skipped from scoring (not comparable).")
        out.ps = None
    if out.pe is not None and out.pe > PE_MAX_COMPARABLE:
        out.notes.append("P/E is extremely high; skipped from scoring (not comparable).")
        out.pe = None
    return out


def _points(value: float | None, scale, bounds: tuple[float, float], points: int) -> float | None:
    if value is None:
        return None
    return scale(value, *bounds) * points


def _score_growth(revenue_cagr: float | None) -> GrowthExplain:
    score = _points(revenue_cagr, scale_linear, GROWTH_RANGE, WEIGHTS["growth"])
    return GrowthExplain(
        used=score is not None,
        weight=WEIGHTS["growth"],
        score=score or 0,
        revenue_cagr=revenue_cagr,
        range=list(GROWTH_RANGE),
    )


def _score_margin(op_margin: float | None, fcf_margin: float | None) -> MarginExplain:
    op_points = _points(op_margin, scale_linear, OP_MARGIN_RANGE, OP_MARGIN_POINTS)
    fcf_points = _points(fcf_margin, scale_linear, FCF_MARGIN_RANGE, FCF_MARGIN_POINTS)
    halves = [p for p in (op_points, fcf_points) if p is not None]
    return MarginExplain(
        used=bool(halves),
        weight=WEIGHTS["margin"],
        score=sum(halves),
        op_margin=op_margin,
        op_margin_points=op_points,
        fcf_margin=fcf_margin,
        fcf_margin_points=fcf_points,
    )


def _score_value(multiples: SanitizedMultiples, pe_reported, ps_reported) -> ValueExplain:
    pe_points = _points(multiples.pe, scale_inverse, PE_RANGE, PE_POINTS)
    ps_points = _points(multiples.ps, scale_inverse, PS_RANGE, PS_POINTS)
    halves = [p for p in (pe_points, ps_points) if p is not None]
    return ValueExplain(
        used=bool(halves),
        weight=WEIGHTS["value"],
        score=sum(halves),
        pe=multiples.pe,
        pe_points=pe_points,
        ps=multiples.ps,
        ps_points=ps_points,
        pe_reported=pe_reported,
        ps_reported=ps_reported,
    )


def _pct(x: float) -> str:
    return f"{x * 100:.1f}%"


def build_auto_summary(revenue_cagr, op_margin, fcf_margin, fcf_trend: str) -> str:
    rev_txt = f"Rev CAGR {_pct(revenue_cagr)}" if revenue_cagr is not None else "Rev CAGR N/A"
    opm_txt = f"OpM {_pct(op_margin)}" if op_margin is not None else "OpM N/A"
    fcfm_txt = f"FCF M {_pct(fcf_margin)}" if fcf_margin is not None else "FCF M N/A"
    return f"{rev_txt} / {opm_txt} / {fcfm_txt} / FCF Trend {fcf_trend}"


def coverage_warnings(coverage: float) -> list[str]:
    if coverage == 0:
        return ["No usable financial/value signals; neutral score used."]
    if coverage < VERY_LOW_COVERAGE:
        return ["Very low coverage; treat as WATCH (not a strong call)."]
    if coverage < LOW_CONF_COVERAGE:
        return ["Low coverage; treat as WATCH (not a strong call)."]
    return []


def score_financials(fin: FinancialsPayload, now: datetime | None = None) -> Recommendation:
    rows = sorted(fin.rows, key=lambda r: r.year)
    latest = rows[-1] if rows else None

    # ── Feature engineering ──
    revenue_cagr = calc_revenue_cagr(rows)
    op_margin = calc_margin(latest.op_income, latest.revenue) if latest else None
    fcf_margin = calc_margin(latest.fcf, latest.revenue) if latest else None
    fcf_trend = calc_fcf_trend(rows)

    pe_reported = fin.multiples.pe
    ps_reported = fin.multiples.ps
    multiples = sanitize_multiples(pe_reported, ps_reported)

    # ── Component scores ──
    growth = _score_growth(revenue_cagr)
    margin = _score_margin(op_margin, fcf_margin)
    value = _score_value(multiples, pe_reported, ps_reported)

    used_total_weight = sum(
        WEIGHTS[name] for name, part in (("growth", growth), ("margin", margin), ("value", value)) if part.used
    )
    raw = growth.score + margin.score + value.score

    # ── Normalize ──
    if used_total_weight == 0:
        score_norm = NEUTRAL_SCORE
    else:
        score_norm = int(clamp(round_half_up(raw / used_total_weight * 100), 0, 100))

    # ── Coverage penalty ──
    coverage = used_total_weight / 100
    penalty_factor = PENALTY_FLOOR + PENALTY_SPAN * coverage
    score = int(clamp(round_half_up(score_norm * penalty_factor), 0, 100))

    # ── Signal + low confidence override ──
    base_signal = score_to_signal(score)
    confidence = coverage_to_confidence(coverage)
    low_conf = coverage < LOW_CONF_COVERAGE
    signal = "WATCH" if low_conf else base_signal

    warnings = multiples.notes + coverage_warnings(coverage)

    if low_conf and base_signal != "WATCH":
        logger.info(f"{fin.ticker}: coverage {coverage:.2f}, {base_signal} downgraded to WATCH")

    rounded_coverage = round(coverage, 2)
    rounded_penalty = round(penalty_factor, 2)

    return Recommendation(
        ticker=fin.ticker,
        generated_at_utc=utc_now_iso(now),
        signal=signal,
        score=score,
        confidence=confidence,
        source=RecommendationSource(
            financials_generated_at_utc=fin.generated_at_utc,
            financials_note=fin.source_note,
            multiples_source=fin.multiples_source,
        ),
        diagnostics=Diagnostics(
            score_norm=score_norm,
            coverage=rounded_coverage,
            penalty_factor=rounded_penalty,
            low_conf=low_conf,
            base_signal=base_signal,
            note=fin.source_note,
        ),
        used=UsedComponents(
            growth=growth.used,
            margin=margin.used,
            value=value.used,
            used_total_weight=used_total_weight,
        ),
        breakdown=ScoreBreakdown(
            growth=round_half_up(growth.score),
            margin=round_half_up(margin.score),
            value=round_half_up(value.score),
            raw_total=round_half_up(raw),
        ),
        summary=RecommendationSummary(
            revenue_cagr=revenue_cagr,
            op_margin=op_margin,
            fcf_margin=fcf_margin,
            fcf_trend=fcf_trend,
            pe=pe_reported,
            ps=ps_reported,
            auto=build_auto_summary(revenue_cagr, op_margin, fcf_margin, fcf_trend),
        ),
        explain=RecommendationExplain(
            growth=growth,
            margin=margin,
            value=value,
            coverage=CoverageExplain(
                used_total_weight=used_total_weight,
                coverage=rounded_coverage,
                penalty_factor=rounded_penalty,
                confidence=confidence,
                low_conf=low_conf,
            ),
        ),
        warnings=warnings,
    )
