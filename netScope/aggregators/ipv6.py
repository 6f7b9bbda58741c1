"""IPv6 -> IPv4 conversion for IPv4-mapped addresses."""
from __future__ import annotations

import ipaddress
from typing import Optional

from netScope.errors import ValidationError
from netScope.models import ConversionType, Ipv6Conversion

NOT_POSSIBLE_NOTE = "Conversion not supported for this IPv6 address"


def _parse_ipv6(value: str) -> Optional[ipaddress.IPv6Address]:
    try:
        return ipaddress.IPv6Address(value)
    except ValueError:
        return None


def convert_ipv6_to_ipv4(ipv6: Optional[str]) -> Ipv6Conversion:
    """
    `::ffff:a.b.c.d` (in any spelling) converts to `a.b.c.d` as "Mapped";
    every other well-formed IPv6 literal is "Not Possible".

    Any literal the standard library parses is accepted, so compressed
    addresses are classified rather than rejected.
    """
    if not ipv6:
        raise ValidationError("IPv6 address is required")

    value = ipv6.strip()
    address = _parse_ipv6(value)
    if address is None:
        raise ValidationError("Invalid IPv6 format")

    mapped = address.ipv4_mapped
    if mapped is not None:
        return Ipv6Conversion(ipv6=value, ipv4=str(mapped), conversion_type=ConversionType.MAPPED)
    return Ipv6Conversion(
        ipv6=value,
        ipv4="N/A",
        conversion_type=ConversionType.NOT_POSSIBLE,
        notes=NOT_POSSIBLE_NOTE,
    )
