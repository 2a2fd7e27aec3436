"""Outward notification channel for discoveries and scan progress."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple

from .models import DiscoveryRecord

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 10_000


class DiscoveryEventSink(Protocol):
    """Callbacks consumed by persistence and presentation layers."""

    def on_subdomain_discovered(self, root_domain: str, subdomain: str) -> None: ...

    def on_url_discovered(self, record: DiscoveryRecord) -> None: ...

    def on_url_discovered_with_raw_exchange(
        self,
        record: DiscoveryRecord,
        raw_request: Optional[bytes],
        raw_response: Optional[bytes],
    ) -> None: ...

    def on_root_domains_updated(self, root_domains: frozenset[str]) -> None: ...

    def on_scan_progress(self, current: int, total: int) -> None: ...

    def on_scan_complete(self) -> None: ...

    def on_error(self, message: str) -> None: ...


class NullEventSink:
    """Sink that ignores every notification."""

    def on_subdomain_discovered(self, root_domain: str, subdomain: str) -> None:
        pass

    def on_url_discovered(self, record: DiscoveryRecord) -> None:
        pass

    def on_url_discovered_with_raw_exchange(
        self,
        record: DiscoveryRecord,
        raw_request: Optional[bytes],
        raw_response: Optional[bytes],
    ) -> None:
        pass

    def on_root_domains_updated(self, root_domains: frozenset[str]) -> None:
        pass

    def on_scan_progress(self, current: int, total: int) -> None:
        pass

    def on_scan_complete(self) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass


@dataclass(frozen=True)
class DiscoveryEvent:
    """A single notification placed on a :class:`QueueEventSink`."""

    kind: str
    payload: Tuple[Any, ...] = ()


class QueueEventSink:
    """Buffers notifications on a bounded queue.

    When the queue is full the event is dropped and a warning is logged, so a
    slow consumer can never stall discovery.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue: "queue.Queue[DiscoveryEvent]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def _put(self, kind: str, *payload: Any) -> None:
        try:
            self._queue.put_nowait(DiscoveryEvent(kind, payload))
        except queue.Full:
            self.dropped += 1
            logger.warning("Event queue full; dropping %s event", kind)

    def on_subdomain_discovered(self, root_domain: str, subdomain: str) -> None:
        self._put("subdomain", root_domain, subdomain)

    def on_url_discovered(self, record: DiscoveryRecord) -> None:
        self._put("url", record)

    def on_url_discovered_with_raw_exchange(
        self,
        record: DiscoveryRecord,
        raw_request: Optional[bytes],
        raw_response: Optional[bytes],
    ) -> None:
        self._put("url_raw", record, raw_request, raw_response)

    def on_root_domains_updated(self, root_domains: frozenset[str]) -> None:
        self._put("root_domains", frozenset(root_domains))

    def on_scan_progress(self, current: int, total: int) -> None:
        self._put("progress", current, total)

    def on_scan_complete(self) -> None:
        self._put("complete")

    def on_error(self, message: str) -> None:
        self._put("error", message)

    def get(self, timeout: Optional[float] = None) -> Optional[DiscoveryEvent]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[DiscoveryEvent]:
        events: List[DiscoveryEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events


class ConsoleEventSink(NullEventSink):
    """Prints discoveries in the command line style."""

    def on_subdomain_discovered(self, root_domain: str, subdomain: str) -> None:
        print(f"[+] Subdomínio {subdomain} ({root_domain})")

    def on_url_discovered(self, record: DiscoveryRecord) -> None:
        note = f" :: {record.notes}" if record.notes else ""
        title = f" [{record.title}]" if record.title else ""
        print(f" - {record.status_code} {record.url}{title}{note}")

    def on_url_discovered_with_raw_exchange(
        self,
        record: DiscoveryRecord,
        raw_request: Optional[bytes],
        raw_response: Optional[bytes],
    ) -> None:
        self.on_url_discovered(record)

    def on_scan_progress(self, current: int, total: int) -> None:
        print(f"   > [{current}/{total}]")

    def on_scan_complete(self) -> None:
        print("[+] Varredura finalizada")

    def on_error(self, message: str) -> None:
        print(f"[!] {message}")


class SafeSink:
    """Forwards to another sink, logging and swallowing consumer failures."""

    def __init__(self, sink: Optional[DiscoveryEventSink] = None) -> None:
        self._sink: DiscoveryEventSink = sink or NullEventSink()

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        target = getattr(self._sink, name, None)

        def forward(*args: Any) -> None:
            if target is None:
                return
            try:
                target(*args)
            except Exception:
                logger.exception("Event sink %s failed", name)

        return forward
