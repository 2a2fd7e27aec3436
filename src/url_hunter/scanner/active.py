"""Active probing of candidate URLs with optional fuzzing and brute force."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import Callable, Iterable, List, Optional, Sequence

from ..core.config import ConfigHolder, FilterConfig
from ..core.errors import BruteForceLimitError, ProbeError
from ..core.events import DiscoveryEventSink, SafeSink
from ..core.models import DiscoveryRecord
from ..core.store import RecordStore
from ..recon.state import DedupCache, ScanJobState
from ..recon.targeting import FilterPipeline, RootDomainSet, extract_host
from ..recon.utils import (
    classify_host,
    extract_path,
    extract_query,
    extract_subdomain,
    extract_title,
    resolve_ip,
)
from .bruteforce import ShortLinkBruteForcer
from .fuzz import DictionaryFuzzAttacker
from .http_client import HttpClient

logger = logging.getLogger(__name__)

MAX_WORKERS = 10
SCAN_DELAY = 0.1
ATTACK_DELAY = 0.05


class ActiveScanner:
    """Issues probes for operator supplied URLs on a fixed-size worker pool.

    Only one list scan runs at a time. Fuzzing and brute force observe their own
    flags in :class:`ScanJobState` between probes, never in the middle of one.
    """

    def __init__(
        self,
        client: HttpClient,
        config: ConfigHolder,
        store: RecordStore,
        sink: Optional[DiscoveryEventSink] = None,
        *,
        dedup: Optional[DedupCache] = None,
        root_domains: Optional[RootDomainSet] = None,
        state: Optional[ScanJobState] = None,
        workers: int = MAX_WORKERS,
        scan_delay: float = SCAN_DELAY,
        attack_delay: float = ATTACK_DELAY,
        brute_force_limit: Optional[int] = None,
        resolver: Callable[[str], str] = resolve_ip,
    ) -> None:
        self.client = client
        self.config = config
        self.store = store
        self.sink = SafeSink(sink)
        self.dedup = dedup if dedup is not None else DedupCache()
        self.root_domains = root_domains if root_domains is not None else RootDomainSet()
        self.state = state or ScanJobState()
        self.scan_delay = scan_delay
        self.attack_delay = attack_delay
        self.brute_force_limit = brute_force_limit
        self.resolver = resolver
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="active-scan"
        )

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------
    @property
    def scanning(self) -> bool:
        return self.state.scanning

    def stop_scanning(self) -> None:
        self.state.end_scan()

    def set_fuzz_enabled(self, enabled: bool) -> None:
        self.state.set_fuzz_enabled(enabled)

    def set_brute_force_enabled(self, enabled: bool) -> None:
        self.state.set_brute_force_enabled(enabled)

    def stop_brute_force(self) -> None:
        self.state.set_brute_force_enabled(False)

    # ------------------------------------------------------------------
    # Single probes
    # ------------------------------------------------------------------
    def scan_one(self, url: str) -> Optional[DiscoveryRecord]:
        """Probes ``url`` once and describes the response.

        Transport failures are logged and yield ``None``; nothing is retried.
        """

        try:
            response = self.client.send(url)
        except ProbeError as exc:
            logger.warning("Probe failed: %s", exc)
            return None

        try:
            host = extract_host(url)
            ip, internal = classify_host(host, self.resolver)
            return DiscoveryRecord(
                url=url,
                method="GET",
                host=host,
                path=extract_path(url),
                query=extract_query(url),
                status_code=response.status_code,
                body_length=response.body_length,
                title=extract_title(response.body_text),
                ip=ip,
                is_internal=internal,
                subdomain=extract_subdomain(host),
                root_domain=self.root_domains.match(host) or "",
                discovered_at=time.time(),
            )
        except ValueError as exc:
            logger.warning("Could not parse probe result for %s: %s", url, exc)
            return None

    def _confirm(self, url: str, note: str = "", config: Optional[FilterConfig] = None) -> Optional[DiscoveryRecord]:
        """Probes ``url`` and reports it unless its status is blacklisted."""

        record = self.scan_one(url)
        if record is None:
            return None
        pipeline = FilterPipeline(config or self.config.get())
        if pipeline.is_status_blacklisted(record.status_code):
            return None

        if note:
            record.notes = note
        self.dedup.try_claim(record.url)
        try:
            record = self.store.insert(record) or record
        except Exception as exc:
            logger.warning("Failed to persist %s: %s", record.url, exc)
        self.sink.on_url_discovered(record)
        return record

    # ------------------------------------------------------------------
    # List scans
    # ------------------------------------------------------------------
    def prefilter(self, urls: Iterable[str], config: FilterConfig) -> List[str]:
        pipeline = FilterPipeline(config)
        accepted: List[str] = []
        for raw in urls:
            url = (raw or "").strip()
            if not url:
                continue
            host = extract_host(url)
            if not host or pipeline.should_reject(url, host):
                continue
            accepted.append(url)
        return accepted

    def scan_list(self, urls: Sequence[str]) -> Optional[concurrent.futures.Future]:
        """Starts a background scan; returns ``None`` when one is already running."""

        token = self.state.try_begin_scan()
        if token is None:
            self.sink.on_error("A scan is already running, try again later")
            return None
        try:
            return self._executor.submit(self._run_scan, list(urls), token)
        except RuntimeError:
            self.state.end_scan(token)
            raise

    def _run_scan(self, urls: List[str], token: int) -> List[DiscoveryRecord]:
        found: List[DiscoveryRecord] = []
        try:
            config = self.config.get()
            targets = self.prefilter(urls, config)
            total = len(targets)
            logger.info("Scanning %d of %d URL(s)", total, len(urls))

            for index, url in enumerate(targets, start=1):
                if not self.state.is_active(token):
                    logger.info("Scan cancelled after %d/%d URL(s)", index - 1, total)
                    break

                record = self._confirm(url, config=config)
                if record is not None:
                    found.append(record)
                    if self.state.fuzz_enabled:
                        found.extend(
                            self.fuzz(
                                record,
                                config,
                                should_continue=lambda: self.state.fuzz_enabled and self.state.is_active(token),
                            )
                        )

                self.sink.on_scan_progress(index, total)
                self.state.pause(self.scan_delay)

            self.sink.on_scan_complete()
        except Exception as exc:
            logger.exception("Scan aborted")
            self.sink.on_error(f"Scan failed: {exc}")
        finally:
            self.state.end_scan(token)
        return found

    # ------------------------------------------------------------------
    # Attacks
    # ------------------------------------------------------------------
    def fuzz(
        self,
        base: DiscoveryRecord,
        config: Optional[FilterConfig] = None,
        *,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> List[DiscoveryRecord]:
        config = config or self.config.get()
        attacker = DictionaryFuzzAttacker(
            lambda url, note: self._confirm(url, note, config),
            should_continue=should_continue or (lambda: self.state.fuzz_enabled),
            pause=lambda: self.state.pause(self.attack_delay),
        )
        return attacker.run(base.canonical_url, config.fuzz_dictionary)

    def brute_force(self, base_url: str, *, force: bool = False) -> Optional[concurrent.futures.Future]:
        """Schedules a short link brute force against ``base_url``.

        Returns ``None`` when brute force is disabled or the estimated number of
        probes exceeds the configured limit (reported through ``on_error``).
        """

        if not self.state.brute_force_enabled:
            logger.info("Short link brute force disabled, skipping %s", base_url)
            self.sink.on_error("Short link brute force is disabled")
            return None

        config = self.config.get()
        forcer = ShortLinkBruteForcer(
            lambda url, note: self._confirm(url, note, config),
            should_continue=lambda: self.state.brute_force_enabled,
            pause=lambda: self.state.pause(self.attack_delay),
            limit=self.brute_force_limit,
        )
        if not force:
            try:
                forcer.check_limit(config.short_link_charset, config.short_link_max_length)
            except BruteForceLimitError as exc:
                self.sink.on_error(str(exc))
                return None

        return self._executor.submit(
            self._run_brute_force,
            forcer,
            base_url,
            config,
        )

    def _run_brute_force(
        self, forcer: ShortLinkBruteForcer, base_url: str, config: FilterConfig
    ) -> List[DiscoveryRecord]:
        try:
            return forcer.run(
                base_url,
                config.short_link_charset,
                config.short_link_max_length,
                force=True,
            )
        except Exception as exc:
            logger.exception("Short link brute force failed")
            self.sink.on_error(f"Short link brute force failed: {exc}")
            return []

    def shutdown(self, wait: bool = True) -> None:
        self.stop_scanning()
        self.stop_brute_force()
        self._executor.shutdown(wait=wait)
