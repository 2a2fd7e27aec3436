"""Engine facade owning the per-session discovery state."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable, Dict, Iterable, Optional, Sequence

from ..recon.listener import PassiveDiscoveryListener
from ..recon.state import DedupCache, ScanJobState, SubdomainRegistry
from ..recon.targeting import RootDomainSet
from ..recon.utils import resolve_ip
from ..scanner.active import ActiveScanner
from ..scanner.http_client import HttpClient, RequestsHttpClient
from .config import ConfigHolder, EngineSettings, FilterConfig
from .events import DiscoveryEventSink, SafeSink
from .models import TrafficEvent
from .store import MemoryStore, RecordStore

logger = logging.getLogger(__name__)


class DiscoveryEngine:
    """Wires the passive listener and the active scanner to shared state."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        sink: Optional[DiscoveryEventSink] = None,
        store: Optional[RecordStore] = None,
        client: Optional[HttpClient] = None,
        *,
        resolver: Callable[[str], str] = resolve_ip,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.sink = SafeSink(sink)
        self.store = store if store is not None else MemoryStore(self.settings.config_path)
        self.client = client or RequestsHttpClient(
            timeout=self.settings.probe_timeout,
            verify_tls=self.settings.verify_tls,
            user_agent=self.settings.user_agent,
        )

        self.root_domains = RootDomainSet(self.settings.root_domains)
        self.config = ConfigHolder(self._initial_config())
        self.dedup = DedupCache()
        self.subdomains = SubdomainRegistry()
        self.job_state = ScanJobState()

        self.listener = PassiveDiscoveryListener(
            self.root_domains,
            self.config,
            self.dedup,
            self.subdomains,
            self.store,
            self.sink,
            workers=self.settings.listener_workers,
            resolver=resolver,
        )
        self.scanner = ActiveScanner(
            self.client,
            self.config,
            self.store,
            self.sink,
            dedup=self.dedup,
            root_domains=self.root_domains,
            state=self.job_state,
            workers=self.settings.scan_workers,
            scan_delay=self.settings.scan_delay,
            attack_delay=self.settings.attack_delay,
            brute_force_limit=self.settings.brute_force_limit,
            resolver=resolver,
        )

    def _initial_config(self) -> FilterConfig:
        try:
            config = self.store.load_config()
        except Exception as exc:
            logger.warning("Failed to load configuration, using defaults: %s", exc)
            return FilterConfig()
        return config if isinstance(config, FilterConfig) else FilterConfig()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def update_root_domains(self, domains: Iterable[str]) -> frozenset[str]:
        snapshot = self.root_domains.replace(domains)
        logger.info("Root domains updated (%d)", len(snapshot))
        self.sink.on_root_domains_updated(snapshot)
        return snapshot

    def update_config(self, config: FilterConfig) -> None:
        self.config.swap(config)
        try:
            self.store.save_config(config)
        except Exception as exc:
            logger.warning("Failed to save configuration: %s", exc)
        logger.info("Filter configuration updated")

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------
    def observe(self, event: TrafficEvent) -> Optional[concurrent.futures.Future]:
        return self.listener.observe(event)

    def scan(self, urls: Sequence[str]) -> Optional[concurrent.futures.Future]:
        return self.scanner.scan_list(urls)

    def brute_force(self, base_url: str, *, force: bool = False) -> Optional[concurrent.futures.Future]:
        return self.scanner.brute_force(base_url, force=force)

    def stop(self) -> None:
        self.scanner.stop_scanning()
        self.scanner.stop_brute_force()

    def set_fuzz_enabled(self, enabled: bool) -> None:
        self.scanner.set_fuzz_enabled(enabled)

    def set_brute_force_enabled(self, enabled: bool) -> None:
        self.scanner.set_brute_force_enabled(enabled)

    def clear_processed(self) -> None:
        self.dedup.clear()
        logger.info("Processed URL cache cleared")

    def discovered_subdomains(self) -> Dict[str, frozenset[str]]:
        return self.subdomains.snapshot()

    def shutdown(self, wait: bool = True) -> None:
        self.listener.shutdown(wait=wait)
        self.scanner.shutdown(wait=wait)

    def __enter__(self) -> "DiscoveryEngine":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.shutdown()
