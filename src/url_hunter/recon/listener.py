"""Passive classification of intercepted traffic."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import Callable, Optional

from ..core.config import ConfigHolder
from ..core.events import DiscoveryEventSink, SafeSink
from ..core.models import DiscoveryRecord, TrafficEvent
from ..core.store import RecordStore
from .state import DedupCache, SubdomainRegistry
from .targeting import FilterPipeline, RootDomainSet, extract_host
from .utils import classify_host, extract_path, extract_query, extract_subdomain, extract_title, resolve_ip

logger = logging.getLogger(__name__)

PASSIVE_NOTE = "Extraído automaticamente do proxy"
DEFAULT_WORKERS = 2


class PassiveDiscoveryListener:
    """Turns observed request/response pairs into discovery events.

    Matching, filtering and deduplication run on the caller's thread; building
    the record, resolving the host and persisting it happen on a small worker
    pool so the interception path never waits on DNS or storage.
    """

    def __init__(
        self,
        root_domains: RootDomainSet,
        config: ConfigHolder,
        dedup: DedupCache,
        subdomains: SubdomainRegistry,
        store: RecordStore,
        sink: Optional[DiscoveryEventSink] = None,
        *,
        workers: int = DEFAULT_WORKERS,
        resolver: Callable[[str], str] = resolve_ip,
    ) -> None:
        self.root_domains = root_domains
        self.config = config
        self.dedup = dedup
        self.subdomains = subdomains
        self.store = store
        self.sink = SafeSink(sink)
        self.resolver = resolver
        self.enabled = True
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="passive-discovery"
        )

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        logger.info("Passive listener %s", "enabled" if self.enabled else "disabled")

    def observe(self, event: TrafficEvent) -> Optional[concurrent.futures.Future]:
        """Classifies ``event``; returns the pending record job when accepted.

        The event itself is never modified and this method never raises.
        """

        if not self.enabled:
            return None
        try:
            return self._classify(event)
        except Exception:
            logger.exception("Failed to classify %s", getattr(event, "url", event))
            return None

    def _classify(self, event: TrafficEvent) -> Optional[concurrent.futures.Future]:
        if not event.url or not len(self.root_domains):
            return None

        host = extract_host(event.url)
        if not host:
            return None

        root_domain = self.root_domains.match(host)
        if root_domain is None:
            return None

        pipeline = FilterPipeline(self.config.get())
        if pipeline.should_reject(event.url, host, event.status_code):
            return None

        if not self.dedup.try_claim(event.url):
            return None

        if self.subdomains.add(root_domain, host):
            self.sink.on_subdomain_discovered(root_domain, host)

        logger.info("Discovered %s (root domain %s)", event.url, root_domain)
        return self._executor.submit(self._emit, event, host, root_domain)

    def _emit(self, event: TrafficEvent, host: str, root_domain: str) -> Optional[DiscoveryRecord]:
        try:
            record = self.build_record(event, host, root_domain)
        except Exception:
            logger.exception("Failed to build record for %s", event.url)
            return None

        try:
            record = self.store.insert(record) or record
        except Exception as exc:
            logger.warning("Failed to persist %s: %s", record.url, exc)

        if event.raw_request is not None or event.raw_response is not None:
            self.sink.on_url_discovered_with_raw_exchange(
                record, event.raw_request, event.raw_response
            )
        else:
            self.sink.on_url_discovered(record)
        return record

    def build_record(self, event: TrafficEvent, host: str, root_domain: str) -> DiscoveryRecord:
        ip, internal = classify_host(host, self.resolver)
        record = DiscoveryRecord(
            url=event.url,
            method=(event.method or "GET").upper(),
            host=host,
            path=extract_path(event.url),
            query=extract_query(event.url),
            ip=ip,
            is_internal=internal,
            subdomain=extract_subdomain(host),
            root_domain=root_domain,
            notes=PASSIVE_NOTE,
            discovered_at=time.time(),
            raw_request=event.raw_request,
            raw_response=event.raw_response,
        )
        if event.has_response:
            record.status_code = int(event.status_code)
            body = event.body or ""
            record.body_length = len(body.encode("utf-8", errors="replace"))
            record.title = extract_title(body)
        return record

    def shutdown(self, wait: bool = True) -> None:
        self.enabled = False
        self._executor.shutdown(wait=wait)
        logger.info("Passive listener stopped")
