from typing import Literal

from pydantic import BaseModel, ConfigDict

Signal = Literal["BUY", "WATCH", "HOLD", "AVOID"]
Confidence = Literal["HIGH", "MED", "LOW"]
FcfTrend = Literal["UP", "DOWN", "FLAT", "N/A"]


class RecommendationSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    financials_generated_at_utc: str | None = None
    financials_note: str = ""
    multiples_source: str | None = None


class Diagnostics(BaseModel):
    model_config = ConfigDict(frozen=True)

    score_norm: int
    coverage: float  # 0-1, share of total weight backed by data
    penalty_factor: float  # 0.70-1.00
    low_conf: bool
    base_signal: Signal  # signal before the low-coverage override
    note: str = ""


class UsedComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    growth: bool = False
    margin: bool = False
    value: bool = False
    used_total_weight: int = 0


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    growth: int = 0
    margin: int = 0
    value: int = 0
    raw_total: int = 0


class RecommendationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    revenue_cagr: float | None = None
    op_margin: float | None = None
    fcf_margin: float | None = None
    fcf_trend: FcfTrend = "N/A"
    pe: float | None = None  # as reported, before sanitization
    ps: float | None = None
    auto: str = ""


class GrowthExplain(BaseModel):
    model_config = ConfigDict(frozen=True)

    used: bool = False
    weight: int = 35
    score: float = 0
    revenue_cagr: float | None = None
    range: list[float] = [-0.2, 0.3]


class MarginExplain(BaseModel):
    model_config = ConfigDict(frozen=True)

    used: bool = False
    weight: int = 35
    score: float = 0
    op_margin: float | None = None
    op_margin_points: float | None = None
    fcf_margin: float | None = None
    fcf_margin_points: float | None = None


class ValueExplain(BaseModel):
    model_config = ConfigDict(frozen=True)

    used: bool = False
    weight: int = 30
    score: float = 0
    pe: float | None = None  # after sanitization
    pe_points: float | None = None
    ps: float | None = None
    ps_points: float | None = None
    pe_reported: float | None = None
    ps_reported: float | None = None


class CoverageExplain(BaseModel):
    model_config = ConfigDict(frozen=True)

    used_total_weight: int = 0
    coverage: float = 0
    penalty_factor: float = 0.7
    confidence: Confidence = "LOW"
    low_conf: bool = True


class RecommendationExplain(BaseModel):
    model_config = ConfigDict(frozen=True)

    growth: GrowthExplain = GrowthExplain()
    margin: MarginExplain = MarginExplain()
    value: ValueExplain = ValueExplain()
    coverage: CoverageExplain = CoverageExplain()


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    generated_at_utc: str
    signal: Signal
    score: int  # 0-100
    confidence: Confidence
    source: RecommendationSource = RecommendationSource()
    diagnostics: Diagnostics
    used: UsedComponents = UsedComponents()
    breakdown: ScoreBreakdown = ScoreBreakdown()
    summary: RecommendationSummary = RecommendationSummary()
    explain: RecommendationExplain = RecommendationExplain()
    warnings: list[str] = []


class RecommendationBatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_at_utc: str
    count: int = 0
    items: list[Recommendation] = []
