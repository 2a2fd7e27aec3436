from __future__ import annotations

import threading
from typing import Dict, Optional

from ..core.models import canonical_url


class DedupCache:
    """Canonical URLs already handled during the current session."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seen: set[str] = set()

    def try_claim(self, url: str) -> bool:
        """Returns ``True`` for exactly one caller per canonical URL."""

        key = canonical_url(url)
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        with self._lock:
            return canonical_url(url) in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()


class SubdomainRegistry:
    """Hosts discovered under each root domain."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hosts: Dict[str, set[str]] = {}

    def add(self, root_domain: str, host: str) -> bool:
        """Records ``host``; returns ``True`` only the first time it is seen."""

        with self._lock:
            hosts = self._hosts.setdefault(root_domain, set())
            if host in hosts:
                return False
            hosts.add(host)
            return True

    def snapshot(self) -> Dict[str, frozenset[str]]:
        with self._lock:
            return {root: frozenset(hosts) for root, hosts in self._hosts.items()}

    def clear(self) -> None:
        with self._lock:
            self._hosts.clear()


class ScanJobState:
    """Cooperative cancellation flags shared by scan loops.

    ``pause`` is an interruptible sleep: flipping any flag wakes sleepers so a
    stopped loop notices at its next checkpoint without finishing the delay.
    """

    def __init__(self, *, fuzz_enabled: bool = True, brute_force_enabled: bool = True) -> None:
        self._condition = threading.Condition()
        self._scanning = False
        self._fuzz_enabled = fuzz_enabled
        self._brute_force_enabled = brute_force_enabled
        self._generation = 0
        self._run_id = 0

    @property
    def scanning(self) -> bool:
        return self._scanning

    @property
    def fuzz_enabled(self) -> bool:
        return self._fuzz_enabled

    @property
    def brute_force_enabled(self) -> bool:
        return self._brute_force_enabled

    def try_begin_scan(self) -> Optional[int]:
        """Claims the scan slot and returns the run token, ``None`` when busy."""

        with self._condition:
            if self._scanning:
                return None
            self._scanning = True
            self._run_id += 1
            return self._run_id

    def is_active(self, token: int) -> bool:
        """True while ``token`` is the current, unstopped run."""

        with self._condition:
            return self._scanning and self._run_id == token

    def end_scan(self, token: Optional[int] = None) -> None:
        """Stops the scan; a stale ``token`` leaves a newer run untouched."""

        with self._condition:
            if token is not None and token != self._run_id:
                return
            self._set("_scanning", False)

    def set_fuzz_enabled(self, enabled: bool) -> None:
        self._set("_fuzz_enabled", enabled)

    def set_brute_force_enabled(self, enabled: bool) -> None:
        self._set("_brute_force_enabled", enabled)

    def _set(self, name: str, value: bool) -> None:
        with self._condition:
            setattr(self, name, bool(value))
            self._generation += 1
            self._condition.notify_all()

    def pause(self, seconds: float) -> None:
        if seconds <= 0:
            return
        with self._condition:
            generation = self._generation
            self._condition.wait_for(lambda: self._generation != generation, timeout=seconds)
