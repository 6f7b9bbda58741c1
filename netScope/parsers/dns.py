"""Parsers for `dig +short` and `dig +trace` output."""
from __future__ import annotations

import ipaddress
import re
from typing import List, Optional

from netScope.models import DnsRecord, RecordType

# e.g. "93.184.216.34"
DOTTED_QUAD_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+$")

DEFAULT_RECORD_TTL = 300


def _lines(output: Optional[str]) -> List[str]:
    if not output:
        return []
    return [line.strip() for line in output.strip().splitlines() if line.strip()]


def _is_ipv6_literal(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def parse_a_addresses(output: Optional[str]) -> List[str]:
    """Dotted-quad lines of `dig +short <name> A`, in output order.

    CNAME chain lines that dig prints before the addresses are dropped.
    """
    return [line for line in _lines(output) if DOTTED_QUAD_PATTERN.match(line)]


def parse_dns_records(
    output: Optional[str],
    record_type: RecordType,
    domain: str,
    ttl: int = DEFAULT_RECORD_TTL,
) -> List[DnsRecord]:
    """
    Turn `dig +short` output for one record type into DnsRecord entries.

    One record per non-blank line; duplicates are kept. A lines must be
    dotted quads, AAAA lines IPv6 literals, TXT values lose their quotes.
    `dig +short` carries no TTL, so every record gets `ttl`.
    """
    if record_type == RecordType.A:
        values = parse_a_addresses(output)
    elif record_type == RecordType.AAAA:
        values = [line for line in _lines(output) if _is_ipv6_literal(line)]
    elif record_type == RecordType.TXT:
        values = [line.replace('"', "") for line in _lines(output)]
    else:
        values = _lines(output)

    return [
        DnsRecord(type=record_type, name=domain, value=value, ttl=ttl)
        for value in values
    ]


def parse_authoritative_servers(output: Optional[str], domain: str) -> List[str]:
    """
    Scan `dig +trace` output for NS lines mentioning `domain`.

    For every such line the first whitespace-delimited token containing a
    dot is taken as the authoritative server name.
    """
    servers: List[str] = []
    if not output:
        return servers
    for line in output.splitlines():
        if "NS" not in line or domain not in line:
            continue
        token = next((part for part in line.split() if "." in part), None)
        if token:
            servers.append(token)
    return servers
