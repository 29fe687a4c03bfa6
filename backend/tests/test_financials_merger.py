"""Tests for field-level reconciliation of Finnhub and SEC rows."""

from fundsignal.analysis.financials_merger import (
    NO_CIK_NOTE,
    build_financials,
    build_source_note,
    empty_financials,
    merge_rows,
    resolve_field,
)
from fundsignal.schemas.financials import AnnualRow, Multiples


class TestResolveField:
    def test_preferred_wins_when_present(self):
        assert resolve_field(100, 90, "finnhub", "sec") == (100, "finnhub")

    def test_fallback_used_when_preferred_missing(self):
        assert resolve_field(None, 100, "finnhub", "sec") == (100, "sec")

    def test_non_finite_preferred_falls_back(self):
        assert resolve_field(float("nan"), 100, "finnhub", "sec") == (100, "sec")

    def test_both_missing(self):
        assert resolve_field(None, None, "finnhub", "sec") == (None, "none")

    def test_zero_is_a_value(self):
        assert resolve_field(0, 100, "finnhub", "sec") == (0, "finnhub")


class TestMergeRows:
    def test_field_independence_within_a_year(self):
        preferred = [AnnualRow(year=2023, revenue=None, op_income=20, fcf=None)]
        fallback = [AnnualRow(year=2023, revenue=100, op_income=18, fcf=7)]

        merged = merge_rows(preferred, fallback)

        assert len(merged) == 1
        row = merged[0]
        assert row.revenue == 100
        assert row.meta.revenue_source == "sec"
        assert row.op_income == 20
        assert row.meta.op_income_source == "finnhub"
        assert row.fcf == 7
        assert row.meta.fcf_source == "sec"

    def test_preferred_value_kept_regardless_of_fallback(self):
        merged = merge_rows(
            [AnnualRow(year=2023, revenue=100)],
            [AnnualRow(year=2023, revenue=250)],
        )
        assert merged[0].revenue == 100
        assert merged[0].meta.revenue_source == "finnhub"

    def test_union_of_years_keeps_three_most_recent(self):
        preferred = [AnnualRow(year=2022, revenue=1), AnnualRow(year=2023, revenue=2)]
        fallback = [AnnualRow(year=2019, revenue=3), AnnualRow(year=2020, revenue=4), AnnualRow(year=2021, revenue=5)]

        merged = merge_rows(preferred, fallback)

        assert [r.year for r in merged] == [2021, 2022, 2023]
        assert merged[0].meta.revenue_source == "sec"
        assert merged[2].meta.revenue_source == "finnhub"

    def test_unknown_fields_marked_none(self):
        merged = merge_rows([], [AnnualRow(year=2023)])
        assert merged[0].revenue is None
        assert merged[0].meta.revenue_source == "none"
        assert merged[0].meta.op_income_source == "none"
        assert merged[0].meta.fcf_source == "none"

    def test_empty_inputs(self):
        assert merge_rows([], []) == []


class TestSourceNote:
    def test_finnhub_preferred(self):
        note = build_source_note(finnhub_ok=True)
        assert note.startswith("Income/CF: Finnhub preferred, SEC used as fallback.")
        assert "FCF is computed as CFO - abs(Capex)." in note

    def test_finnhub_unavailable(self):
        note = build_source_note(finnhub_ok=False)
        assert note.startswith("Income/CF: SEC source (Finnhub unavailable).")

    def test_sec_unavailable(self):
        note = build_source_note(finnhub_ok=True, sec_ok=False)
        assert "SEC unavailable; Finnhub figures only." in note


class TestPayloads:
    def test_build_financials(self):
        fin = build_financials(
            "TEST",
            finnhub_rows=[AnnualRow(year=2023, revenue=10)],
            sec_rows=[AnnualRow(year=2022, revenue=8)],
            multiples=Multiples(pe=20, ps=None),
            finnhub_ok=True,
            multiples_source="finnhub",
        )
        assert fin.ticker == "TEST"
        assert [r.year for r in fin.rows] == [2022, 2023]
        assert fin.multiples.pe == 20
        assert fin.multiples.ps is None
        assert fin.generated_at_utc.endswith("Z")

    def test_empty_financials_serializes_nulls(self):
        fin = empty_financials("ZZZZ")
        assert fin.rows == []
        assert fin.source_note == NO_CIK_NOTE
        dumped = fin.model_dump()
        assert dumped["multiples"] == {"pe": None, "ps": None}
        assert dumped["multiples_source"] is None
