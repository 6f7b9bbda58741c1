"""Error taxonomy shared by the probes, aggregators and the API layer."""
from __future__ import annotations

from typing import Optional


class DiagnosticError(Exception):
    """Base class; `message` is safe to show to API clients."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(DiagnosticError):
    """Malformed domain, IP or request body. Nothing has been probed."""

    status_code = 400


class AggregateFailure(DiagnosticError):
    """No sub-probe of a category produced usable content."""

    status_code = 500


class ProbeUnavailable(DiagnosticError):
    """An external tool or service failed, timed out or is missing.

    Recovered inside the aggregator; never reaches the client on its own.
    """


class UpstreamDegraded(DiagnosticError):
    """A third-party API answered with a non-success status."""
