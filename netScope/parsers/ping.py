"""
Ping output parser.

Example input (iputils):
    PING example.com (93.184.216.34) 56(84) bytes of data.
    64 bytes from 93.184.216.34: icmp_seq=1 ttl=56 time=11.2 ms
    64 bytes from 93.184.216.34: icmp_seq=2 ttl=56 time=10.9 ms

    --- example.com ping statistics ---
    2 packets transmitted, 2 received, 0% packet loss, time 1001ms
    rtt min/avg/max/mdev = 10.900/11.050/11.200/0.150 ms

BSD/macOS print "round-trip min/avg/max/stddev = ..." instead; only the
`min/avg/max` marker and the first three numbers on that line matter.
"""
from __future__ import annotations

import re
from typing import Optional

from netScope.models import PingReport, PingSample, PingStats

SUMMARY_MARKER = "min/avg/max"
SUMMARY_PATTERN = re.compile(r"(\d+\.\d+)/(\d+\.\d+)/(\d+\.\d+)")
SAMPLE_PATTERN = re.compile(r"time[=<]\s*(\d+(?:\.\d+)?)")
LOSS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)% packet loss")


def parse_ping_output(output: Optional[str]) -> PingReport:
    """
    Extract the min/avg/max summary, per-packet times and packet loss.

    Each part is independent: a missing summary line leaves `summary` as
    None even when individual samples were found, and vice versa.
    """
    report = PingReport()
    if not output:
        return report

    lines = output.splitlines()

    summary_line = next((line for line in lines if SUMMARY_MARKER in line), None)
    if summary_line:
        match = SUMMARY_PATTERN.search(summary_line)
        if match:
            report.summary = (
                float(match.group(1)),
                float(match.group(2)),
                float(match.group(3)),
            )

    for line in lines:
        match = SAMPLE_PATTERN.search(line)
        if match:
            report.samples.append(
                PingSample(packet=len(report.samples) + 1, time=float(match.group(1)))
            )

    loss_match = LOSS_PATTERN.search(output)
    if loss_match:
        report.packet_loss = float(loss_match.group(1))

    return report


def build_ping_stats(
    report: PingReport,
    *,
    sample_count: int,
    interval_seconds: float,
    timeout_ms: int,
    packet_size: int = 56,
) -> Optional[PingStats]:
    """Summary statistics, or None when the summary line was absent."""
    if report.summary is None:
        return None
    rtt_min, rtt_avg, rtt_max = report.summary
    return PingStats(
        min=rtt_min,
        avg=rtt_avg,
        max=rtt_max,
        packet_loss=report.packet_loss if report.packet_loss is not None else 0.0,
        jitter=abs(rtt_max - rtt_min),
        stddev=(rtt_max - rtt_min) / 4,
        sample_count=sample_count,
        interval_seconds=interval_seconds,
        timeout_ms=timeout_ms,
        packet_size=packet_size,
    )
