"""Pydantic data model for diagnostic results.

Field names are snake_case in Python and camelCase on the wire
(`model_dump(by_alias=True)`), which is what the dashboard consumes.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN = "Unknown"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordType(str, Enum):
    A = "A"
    AAAA = "AAAA"
    MX = "MX"
    NS = "NS"
    TXT = "TXT"
    CNAME = "CNAME"


# Query order is also the order records appear in a DNS result
RECORD_TYPES: List[RecordType] = [
    RecordType.A, RecordType.AAAA, RecordType.MX,
    RecordType.NS, RecordType.TXT, RecordType.CNAME,
]


class PortState(str, Enum):
    OPEN = "Open"
    FILTERED = "Filtered"
    CLOSED = "Closed"


class DnsRecord(WireModel):
    type: RecordType
    name: str
    value: str
    ttl: int = 300


class WhoisInfo(WireModel):
    registrar: str = UNKNOWN
    creation_date: str = UNKNOWN
    expiration_date: str = UNKNOWN
    status: str = UNKNOWN


class ResponseTime(WireModel):
    record: str
    time: float


class DnsResult(WireModel):
    domain: str
    records: List[DnsRecord] = Field(default_factory=list)
    # Synthetic per-address figures, not network measurements
    response_times: List[ResponseTime] = Field(default_factory=list)
    response_times_illustrative: bool = True
    authoritative: List[str] = Field(default_factory=list)
    whois: WhoisInfo = Field(default_factory=WhoisInfo)
    timestamp: str = Field(default_factory=utc_now_iso)


class PingStats(WireModel):
    min: float
    avg: float
    max: float
    packet_loss: float = 0.0
    jitter: float
    # (max - min) / 4, kept for compatibility; not a real standard deviation
    stddev: float
    sample_count: int
    interval_seconds: float
    timeout_ms: int
    packet_size: int = 56


class PingSample(WireModel):
    packet: int
    time: float


class PingReport(BaseModel):
    """Everything the ping parser could recover from one run."""
    summary: Optional[Tuple[float, float, float]] = None  # (min, avg, max)
    samples: List[PingSample] = Field(default_factory=list)
    packet_loss: Optional[float] = None


class HttpStatus(WireModel):
    status: int
    status_text: str
    response_time: Optional[float] = None
    headers: List[str] = Field(default_factory=list)


class ConnectivityResult(WireModel):
    domain: str
    ping: Optional[PingStats] = None
    ping_times: List[PingSample] = Field(default_factory=list)
    http: HttpStatus
    ports: Dict[int, PortState] = Field(default_factory=dict)
    timestamp: str = Field(default_factory=utc_now_iso)


class Hop(WireModel):
    index: int
    hostname: str
    ip: str
    round_trip_ms: float


class RouteSummary(WireModel):
    count: int
    min: float
    max: float
    mean: float


class RoutingResult(WireModel):
    domain: str
    hops: List[Hop] = Field(default_factory=list)
    summary: Optional[RouteSummary] = None
    # True when `hops` is the synthetic demo path rather than traceroute output
    illustrative: bool = False
    timestamp: str = Field(default_factory=utc_now_iso)


class ResolverRecordSet(WireModel):
    resolver_name: str
    resolver_ip: str
    records: List[str] = Field(default_factory=list)
    response_time_ms: Optional[float] = None


class ConsistencyVerdict(WireModel):
    consistent: bool
    unique_records: List[str] = Field(default_factory=list)
    total_resolvers: int
    responding_resolvers: int


class DnsCheckResult(WireModel):
    domain: str
    resolvers: List[ResolverRecordSet] = Field(default_factory=list)
    consistency: ConsistencyVerdict
    timestamp: str = Field(default_factory=utc_now_iso)


class GeoRecord(WireModel):
    ip: str
    country: str = UNKNOWN
    country_code: str = "XX"
    region: str = UNKNOWN
    city: str = UNKNOWN
    lat: float = 0.0
    lon: float = 0.0
    isp: str = "Unknown ISP"
    organization: str = "Unknown Organization"
    timezone: str = UNKNOWN
    asn: str = "AS0"
    fallback: bool = False
    note: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now_iso)

    @classmethod
    def sentinel(cls, ip: str, note: str = "API failed, using fallback data") -> "GeoRecord":
        return cls(ip=ip, fallback=True, note=note)


class IspRecord(GeoRecord):
    connection_type: str = UNKNOWN


class ConversionType(str, Enum):
    MAPPED = "Mapped"
    NOT_POSSIBLE = "Not Possible"


class Ipv6Conversion(WireModel):
    ipv6: str
    ipv4: str = "N/A"
    conversion_type: ConversionType
    notes: str = ""
    timestamp: str = Field(default_factory=utc_now_iso)


class Ipv6ConvertRequest(BaseModel):
    ipv6: Optional[str] = None
