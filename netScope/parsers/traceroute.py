"""Traceroute output parser and the illustrative fallback path."""
from __future__ import annotations

import re
from typing import List, Optional

from netScope.models import Hop

# e.g. " 3  ae-1.r21.example.net (129.250.3.1)  12.345 ms  11.9 ms  12.0 ms"
# Only the first RTT is kept. "* * *" lines and the header never match; leading
# "*" timeouts before the responding router are skipped.
HOP_PATTERN = re.compile(
    r"^\s*(?P<hop>\d+)\s+"
    r"(?:\*\s+)*"
    r"(?P<hostname>.+?)\s+"
    r"\((?P<ip>.+?)\)\s+"
    r"(?P<rtt>\d+\.\d+)\s*ms"
)


def parse_traceroute_hops(output: Optional[str]) -> List[Hop]:
    """Parse `traceroute` output into hops, preserving probe order."""
    hops: List[Hop] = []
    if not output:
        return hops
    for line in output.splitlines():
        match = HOP_PATTERN.match(line)
        if not match:
            continue
        hops.append(
            Hop(
                index=int(match.group("hop")),
                hostname=match.group("hostname").strip(),
                ip=match.group("ip"),
                round_trip_ms=float(match.group("rtt")),
            )
        )
    return hops


def illustrative_hops(domain: str) -> List[Hop]:
    """
    A fixed, made-up five-hop path ending at `domain`.

    Used only when traceroute produced nothing; results built from it are
    flagged `illustrative=True` and must not be read as measurements.
    """
    path = [
        ("gateway.local", "192.168.1.1", 1.234),
        ("isp-router.net", "10.0.0.1", 15.678),
        ("core-router.isp.com", "203.0.113.1", 25.901),
        ("border-router.example.org", "198.51.100.1", 45.234),
        (domain, "93.184.216.34", 87.567),
    ]
    return [
        Hop(index=i, hostname=hostname, ip=ip, round_trip_ms=rtt)
        for i, (hostname, ip, rtt) in enumerate(path, start=1)
    ]
