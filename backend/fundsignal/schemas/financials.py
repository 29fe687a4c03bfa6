from typing import Literal

from pydantic import BaseModel, ConfigDict

Provenance = Literal["finnhub", "sec", "none"]


class RowMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    revenue_source: Provenance = "none"
    op_income_source: Provenance = "none"
    fcf_source: Provenance = "none"


class AnnualRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    revenue: float | None = None
    op_income: float | None = None
    fcf: float | None = None  # CFO - abs(Capex)
    meta: RowMeta = RowMeta()


class FieldCoverage(BaseModel):
    revenue: bool = False
    op_income: bool = False
    fcf: bool = False


class ExtractedSeries(BaseModel):
    """Output of a single provider's extractor, before reconciliation."""

    rows: list[AnnualRow] = []
    coverage: FieldCoverage = FieldCoverage()


class Multiples(BaseModel):
    model_config = ConfigDict(frozen=True)

    pe: float | None = None
    ps: float | None = None


class FinancialsPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    generated_at_utc: str
    source_note: str = ""
    rows: list[AnnualRow] = []  # ascending by year, at most 3
    multiples: Multiples = Multiples()
    multiples_source: str | None = None
