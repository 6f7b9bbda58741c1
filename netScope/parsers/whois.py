"""WHOIS field extraction."""
from __future__ import annotations

import re
from typing import Optional, Sequence

from netScope.models import UNKNOWN, WhoisInfo

# Each field lists its labels in priority order; the first label with a
# match wins, and within a label the first matching line wins.
FIELD_LABELS = {
    "registrar": ("Registrar",),
    "creation_date": ("Creation Date",),
    "expiration_date": ("Expiration Date", "Registry Expiry Date"),
    "status": ("Status",),
}


def _first_match(output: str, labels: Sequence[str]) -> Optional[str]:
    for label in labels:
        match = re.search(rf"{re.escape(label)}:\s*([^\n]+)", output)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def parse_whois(output: Optional[str]) -> WhoisInfo:
    """Registrar, creation/expiration dates and status; "Unknown" when absent."""
    if not output:
        return WhoisInfo()
    fields = {
        name: _first_match(output, labels) or UNKNOWN
        for name, labels in FIELD_LABELS.items()
    }
    return WhoisInfo(**fields)
