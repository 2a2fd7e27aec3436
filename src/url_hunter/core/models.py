"""Shared data structures used across discovery stages."""

from __future__ import annotations

import base64
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class CheckStatus(str, Enum):
    """Manual review state of a discovered URL."""

    UNCHECKED = "UNCHECKED"
    CHECKING = "CHECKING"
    DONE = "DONE"


def canonical_url(url: str) -> str:
    """Drops everything from the first ``?`` onwards."""

    if not url:
        return url
    index = url.find("?")
    return url if index == -1 else url[:index]


@dataclass(frozen=True)
class TrafficEvent:
    """A request/response pair observed by the interception layer."""

    url: str
    method: str = "GET"
    status_code: Optional[int] = None
    body: Optional[str] = None
    raw_request: Optional[bytes] = None
    raw_response: Optional[bytes] = None

    @property
    def has_response(self) -> bool:
        return self.status_code is not None


@dataclass(frozen=True)
class ProbeResponse:
    """Outcome of a single outbound probe."""

    status_code: int
    body_length: int
    body_text: str = ""


@dataclass
class DiscoveryRecord:
    """A URL confirmed to belong to a configured root domain."""

    url: str
    method: str = "GET"
    host: str = ""
    path: str = ""
    query: str = ""
    status_code: int = 0
    body_length: int = 0
    title: str = ""
    ip: str = ""
    is_internal: bool = False
    subdomain: str = ""
    root_domain: str = ""
    check_status: CheckStatus = CheckStatus.UNCHECKED
    notes: str = ""
    discovered_at: float = field(default_factory=time.time)
    checked_at: Optional[float] = None
    raw_request: Optional[bytes] = None
    raw_response: Optional[bytes] = None
    id: int = 0

    @property
    def canonical_url(self) -> str:
        return canonical_url(self.url)

    def mark(self, status: CheckStatus) -> None:
        """Moves the record to ``status``; ``DONE`` stamps ``checked_at``."""

        self.check_status = CheckStatus(status)
        if self.check_status is CheckStatus.DONE:
            self.checked_at = time.time()

    def merge(self, newer: "DiscoveryRecord") -> None:
        """Overwrites fields with the non-empty values of a later observation."""

        for name in (
            "method",
            "host",
            "path",
            "query",
            "status_code",
            "body_length",
            "title",
            "ip",
            "subdomain",
            "root_domain",
            "notes",
            "raw_request",
            "raw_response",
        ):
            value = getattr(newer, name)
            if value:
                setattr(self, name, value)
        if newer.ip:
            self.is_internal = newer.is_internal

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["check_status"] = self.check_status.value
        for key in ("raw_request", "raw_response"):
            raw = data[key]
            data[key] = base64.b64encode(raw).decode("ascii") if raw else None
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DiscoveryRecord":
        values = dict(raw)
        values["check_status"] = CheckStatus(values.get("check_status") or CheckStatus.UNCHECKED)
        for key in ("raw_request", "raw_response"):
            encoded = values.get(key)
            values[key] = base64.b64decode(encoded) if encoded else None
        known = cls.__dataclass_fields__.keys()
        return cls(**{key: value for key, value in values.items() if key in known})
