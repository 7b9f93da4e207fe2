"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass, field


def _default_patterns() -> list[str]:
    return ["/live/{app}/{username}"]


@dataclass
class Config:
    """Settings for the RTMP ingest server, HLS output and authorization.

    Delays are expressed in seconds.
    """

    rtmp_port: str = ":1935"
    http_port: str = ":8080"
    output_dir: str = "./streams"
    reconnect_delay: float = 5.0
    cleanup_delay: float = 2.0
    authorized_patterns: list[str] = field(default_factory=_default_patterns)


def default_config() -> Config:
    """Return the default configuration."""
    return Config()