"""Syntax predicates for domain names and IP literals.

The IPv6 check is deliberately narrow: it accepts the full eight-group form
plus the two special shorthands `::` and `::1`. Any other zero-compressed
address (e.g. `2001:db8::1`) is rejected by `is_valid_ipv6`.
"""
from __future__ import annotations

import re

MAX_DOMAIN_LENGTH = 253

_DOMAIN_RE = re.compile(
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)
_IPV4_RE = re.compile(
    r"(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
)
_IPV6_FULL_RE = re.compile(r"(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}")
_IPV6_SHORTHANDS = frozenset({"::", "::1"})


def is_valid_domain(value: str) -> bool:
    if not isinstance(value, str) or len(value) > MAX_DOMAIN_LENGTH:
        return False
    return _DOMAIN_RE.fullmatch(value) is not None


def is_valid_ipv4(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return _IPV4_RE.fullmatch(value) is not None


def is_valid_ipv6(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return value in _IPV6_SHORTHANDS or _IPV6_FULL_RE.fullmatch(value) is not None


def is_valid_ip(value: str) -> bool:
    return is_valid_ipv4(value) or is_valid_ipv6(value)


def normalize_target(value: str) -> str:
    """Canonical cache form of a domain or IP: trimmed, lower-case, no trailing dot."""
    target = value.strip().lower()
    if target.endswith(".") and target != ".":
        target = target[:-1]
    return target
