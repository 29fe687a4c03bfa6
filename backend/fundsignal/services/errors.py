"""
Exceptions raised by the upstream data layer.

Missing CIK mappings and missing fields are not errors and never raise;
only transport/HTTP failures do.
"""


class FundsignalError(Exception):
    """Base exception for fundsignal."""


class UpstreamUnavailable(FundsignalError):
    """HTTP or transport failure talking to SEC EDGAR or Finnhub."""

    def __init__(self, message: str, source: str = "", status_code: int | None = None):
        super().__init__(message)
        self.source = source
        self.status_code = status_code
