"""Pytest configuration and fixtures."""

import os
from unittest.mock import patch

import pytest

from fundsignal.config import get_settings
from fundsignal.schemas.financials import AnnualRow, FinancialsPayload, Multiples


@pytest.fixture(autouse=True)
def test_settings():
    """Deterministic settings for every test; never reads a developer's .env keys."""
    env = {
        "FINNHUB_API_KEY": "test-key",
        "EDGAR_USER_AGENT": "fundsignal-tests@example.com",
        "FINNHUB_CALLS_PER_MINUTE": "1000",
    }
    get_settings.cache_clear()
    with patch.dict(os.environ, env, clear=False):
        yield get_settings()
    get_settings.cache_clear()


def make_payload(rows: list[AnnualRow], pe=None, ps=None, ticker: str = "TEST") -> FinancialsPayload:
    return FinancialsPayload(
        ticker=ticker,
        generated_at_utc="2024-03-01T00:00:00.000Z",
        source_note="Income/CF: Finnhub preferred, SEC used as fallback.",
        rows=rows,
        multiples=Multiples(pe=pe, ps=ps),
        multiples_source="finnhub",
    )


@pytest.fixture
def growth_rows() -> list[AnnualRow]:
    """Three healthy, growing years."""
    return [
        AnnualRow(year=2021, revenue=100, op_income=10, fcf=5),
        AnnualRow(year=2022, revenue=120, op_income=15, fcf=8),
        AnnualRow(year=2023, revenue=150, op_income=22, fcf=12),
    ]


def edgar_point(fy: int, val, filed: str, fp: str = "FY", form: str = "10-K") -> dict:
    return {"fy": fy, "fp": fp, "form": form, "filed": filed, "val": val, "end": f"{fy}-12-31"}


@pytest.fixture
def edgar_facts() -> dict:
    """companyfacts payload with four fiscal years, a restatement and some quarterly noise."""
    return {
        "cik": 320193,
        "entityName": "Test Corp",
        "facts": {
            "us-gaap": {
                "Revenues": {"units": {"USD": [
                    edgar_point(2020, 80, "2021-02-01"),
                    edgar_point(2021, 100, "2022-02-01"),
                    edgar_point(2022, 118, "2023-02-01"),
                    edgar_point(2022, 120, "2024-02-01"),  # restated in the next 10-K
                    edgar_point(2023, 150, "2024-02-01"),
                    edgar_point(2023, 40, "2023-05-01", fp="Q1", form="10-Q"),
                ]}},
                "OperatingIncomeLoss": {"units": {"USD": [
                    edgar_point(2021, 10, "2022-02-01"),
                    edgar_point(2022, 15, "2023-02-01"),
                    edgar_point(2023, 22, "2024-02-01"),
                ]}},
                "NetCashProvidedByUsedInOperatingActivities": {"units": {"USD": [
                    edgar_point(2021, 9, "2022-02-01"),
                    edgar_point(2022, 12, "2023-02-01"),
                    edgar_point(2023, 17, "2024-02-01"),
                ]}},
                "PaymentsToAcquirePropertyPlantAndEquipment": {"units": {"USD": [
                    edgar_point(2021, 4, "2022-02-01"),
                    edgar_point(2022, -4, "2023-02-01"),
                    edgar_point(2023, 5, "2024-02-01"),
                ]}},
            }
        },
    }


def finnhub_report(year: int, ic: dict, cf: dict, period: str = "FY") -> dict:
    return {
        "year": year,
        "period": period,
        "form": "10-K",
        "report": {
            "ic": [{"concept": k, "value": v, "unit": "usd"} for k, v in ic.items()],
            "cf": [{"concept": k, "value": v, "unit": "usd"} for k, v in cf.items()],
            "bs": [],
        },
    }


@pytest.fixture
def finnhub_reports() -> list[dict]:
    return [
        finnhub_report(
            2023,
            {"us-gaap_Revenues": 151, "us-gaap_OperatingIncomeLoss": 23},
            {
                "us-gaap_NetCashProvidedByUsedInOperatingActivities": 20,
                "us-gaap_PaymentsToAcquirePropertyPlantAndEquipment": -6,
            },
        ),
        finnhub_report(
            2022,
            {"us-gaap_Revenues": 121},
            {"us-gaap_NetCashProvidedByUsedInOperatingActivities": 13},
        ),
    ]
