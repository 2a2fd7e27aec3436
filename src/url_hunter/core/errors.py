"""Exception hierarchy shared by the discovery engine."""

from __future__ import annotations


class UrlHunterError(RuntimeError):
    """Base class for errors raised by the engine."""


class ConfigError(UrlHunterError, ValueError):
    """Raised when configuration values are out of range."""


class ProbeError(UrlHunterError):
    """Raised when an outbound probe fails at the transport level."""


class BruteForceLimitError(UrlHunterError):
    """Raised when a brute force run would exceed the combination limit."""

    def __init__(self, combinations: int, limit: int) -> None:
        super().__init__(
            f"Brute force would issue {combinations} probes (limit {limit})"
        )
        self.combinations = combinations
        self.limit = limit
