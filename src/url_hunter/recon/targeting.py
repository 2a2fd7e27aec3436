"""Root domain matching and candidate filtering rules."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from ..core.config import FilterConfig

logger = logging.getLogger(__name__)


def normalize_host(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def extract_host(url: Optional[str]) -> str:
    """Returns the lower-cased host of ``url`` or ``""`` when there is none."""

    if not url:
        return ""

    value = url.strip()
    lowered = value.lower()
    for prefix in ("http://", "https://"):
        if lowered.startswith(prefix):
            value = value[len(prefix):]
            break

    for separator in ("/", "?"):
        index = value.find(separator)
        if index != -1:
            value = value[:index]

    # ports after an IPv6 literal only
    colon = value.rfind(":")
    if colon != -1 and colon > value.rfind("]"):
        value = value[:colon]

    return normalize_host(value)


def host_matches(host: str, domain: str) -> bool:
    """Exact or subdomain match; ``evilexample.com`` never matches ``example.com``."""

    return bool(domain) and (host == domain or host.endswith("." + domain))


def match_root_domain(host: str, root_domains: Iterable[str]) -> Optional[str]:
    """Returns the most specific root domain owning ``host``."""

    host = normalize_host(host)
    if not host:
        return None

    best: Optional[str] = None
    for root in root_domains:
        candidate = normalize_host(root)
        if host_matches(host, candidate) and (best is None or len(candidate) > len(best)):
            best = candidate
    return best


def _path_of(url: str) -> str:
    for separator in ("?", "#"):
        index = url.find(separator)
        if index != -1:
            url = url[:index]

    scheme = url.find("://")
    if scheme != -1:
        remainder = url[scheme + 3:]
        slash = remainder.find("/")
        return remainder[slash:] if slash != -1 else ""
    slash = url.find("/")
    return url[slash:] if slash != -1 else ""


def extract_extension(url: Optional[str]) -> str:
    """Lower-cased file extension of the URL path, ``""`` when absent."""

    if not url:
        return ""
    path = _path_of(url)
    dot = path.rfind(".")
    if dot > path.rfind("/") and dot < len(path) - 1:
        return path[dot + 1:].lower()
    return ""


class RootDomainSet:
    """Case-insensitive set of root domains replaced as a whole."""

    def __init__(self, domains: Optional[Iterable[str]] = None) -> None:
        self._lock = threading.Lock()
        self._domains: frozenset[str] = self._normalize(domains)

    @staticmethod
    def _normalize(domains: Optional[Iterable[str]]) -> frozenset[str]:
        if not domains:
            return frozenset()
        return frozenset(
            host for host in (normalize_host(domain) for domain in domains if domain) if host
        )

    def replace(self, domains: Optional[Iterable[str]]) -> frozenset[str]:
        snapshot = self._normalize(domains)
        with self._lock:
            self._domains = snapshot
        return snapshot

    def snapshot(self) -> frozenset[str]:
        return self._domains

    def match(self, host: str) -> Optional[str]:
        return match_root_domain(host, self._domains)

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and normalize_host(domain) in self._domains

    def __iter__(self) -> Iterator[str]:
        return iter(self._domains)

    def __len__(self) -> int:
        return len(self._domains)


@dataclass(slots=True)
class FilterPipeline:
    """Host, extension and status code blacklists evaluated in that order."""

    config: FilterConfig

    def is_host_blacklisted(self, host: str) -> bool:
        host = normalize_host(host)
        for domain in self.config.domain_blacklist:
            if host_matches(host, domain):
                logger.debug("Host %s rejected by domain blacklist (%s)", host, domain)
                return True
        return False

    def is_extension_blacklisted(self, url: str) -> bool:
        extension = extract_extension(url)
        if extension and extension in self.config.extension_blacklist:
            logger.debug("URL %s rejected by extension blacklist (%s)", url, extension)
            return True
        return False

    def is_status_blacklisted(self, status_code: Optional[int]) -> bool:
        if status_code is None:
            return False
        if status_code in self.config.status_code_blacklist:
            logger.debug("Status code %s rejected by blacklist", status_code)
            return True
        return False

    def should_reject(self, url: str, host: str, status_code: Optional[int] = None) -> bool:
        return (
            self.is_host_blacklisted(host)
            or self.is_extension_blacklisted(url)
            or self.is_status_blacklisted(status_code)
        )


def should_reject(
    url: str,
    host: str,
    status_code: Optional[int],
    config: Optional[FilterConfig],
) -> bool:
    """Functional form of :meth:`FilterPipeline.should_reject`."""

    if config is None:
        return False
    return FilterPipeline(config).should_reject(url, host, status_code)
