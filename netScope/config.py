"""Configuration loader for the netScope diagnostics service."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class CacheConfig(BaseModel):
    ttl_seconds: float = Field(default=300.0, gt=0)


class ProcessConfig(BaseModel):
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_output_bytes: int = Field(default=1024 * 1024, ge=1)


class PortProbeConfig(BaseModel):
    ports: List[int] = Field(default_factory=lambda: [80, 443, 22, 21, 25, 53, 993, 995])
    timeout_seconds: float = Field(default=5.0, gt=0)


class PingConfig(BaseModel):
    count: int = Field(default=10, ge=1)
    interval_seconds: float = Field(default=0.2, gt=0)
    wait_seconds: int = Field(default=5, ge=1)
    packet_size: int = Field(default=56, ge=0)


class HttpProbeConfig(BaseModel):
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_redirects: int = Field(default=5, ge=0)


class TracerouteConfig(BaseModel):
    max_hops: int = Field(default=15, ge=1, le=64)
    wait_seconds: int = Field(default=5, ge=1)
    illustrative_fallback: bool = Field(default=True)


class ResolverEntry(BaseModel):
    name: str
    ip: str


def default_resolvers() -> List[ResolverEntry]:
    return [
        ResolverEntry(name="Google", ip="8.8.8.8"),
        ResolverEntry(name="Cloudflare", ip="1.1.1.1"),
        ResolverEntry(name="OpenDNS", ip="208.67.222.222"),
        ResolverEntry(name="Quad9", ip="9.9.9.9"),
    ]


class ResolverConfig(BaseModel):
    resolvers: List[ResolverEntry] = Field(default_factory=default_resolvers)
    timeout_seconds: float = Field(default=5.0, gt=0)


class GeoConfig(BaseModel):
    api_url: str = Field(default="http://ip-api.com/json")
    echo_url: str = Field(default="https://api.ipify.org?format=json")
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_requests_per_minute: int = Field(default=45, ge=1)
    failure_threshold: int = Field(default=5, ge=1)
    recovery_seconds: float = Field(default=120.0, gt=0)


class RateLimitConfig(BaseModel):
    enabled: bool = Field(default=True)
    max_requests: int = Field(default=100, ge=1)
    window_seconds: float = Field(default=15 * 60, gt=0)


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001, ge=1, le=65535)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class Settings(BaseModel):
    cache: CacheConfig = Field(default_factory=CacheConfig)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    port_probe: PortProbeConfig = Field(default_factory=PortProbeConfig)
    ping: PingConfig = Field(default_factory=PingConfig)
    http_probe: HttpProbeConfig = Field(default_factory=HttpProbeConfig)
    traceroute: TracerouteConfig = Field(default_factory=TracerouteConfig)
    dns_check: ResolverConfig = Field(default_factory=ResolverConfig)
    geo: GeoConfig = Field(default_factory=GeoConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def load(cls, path: str) -> "Settings":
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"netScope config not found: {cfg_path}")
        try:
            raw = yaml.safe_load(cfg_path.read_text()) or {}
            return cls(**raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid netScope config: {exc}") from exc


def _apply_env_overrides(settings: Settings) -> Settings:
    host = os.getenv("NETSCOPE_API_HOST")
    port = os.getenv("NETSCOPE_API_PORT")
    if host:
        settings.server.host = host
    if port:
        settings.server.port = int(port)
    return settings


@lru_cache(maxsize=1)
def get_settings(path: Optional[str] = None) -> Settings:
    """Load settings from `path`, then NETSCOPE_CONFIG, falling back to defaults."""
    cfg_path = path or os.getenv("NETSCOPE_CONFIG")
    settings = Settings.load(cfg_path) if cfg_path else Settings()
    return _apply_env_overrides(settings)
