"""Configuration loading and snapshot handling."""

from __future__ import annotations

import os
import string
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_EXTENSION_BLACKLIST = (
    "ico",
    "jpg",
    "jpeg",
    "png",
    "gif",
    "css",
    "js",
    "woff",
    "woff2",
    "ttf",
    "eot",
    "svg",
)
DEFAULT_STATUS_BLACKLIST = (403, 404, 501, 502, 503)
DEFAULT_FUZZ_DICTIONARY = (
    "admin",
    "test",
    "backup",
    "config",
    "login",
    "api",
    "upload",
    "debug",
)
DEFAULT_CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits

# camelCase option name -> FilterConfig attribute
_OPTION_NAMES = {
    "domainBlacklist": "domain_blacklist",
    "extensionBlacklist": "extension_blacklist",
    "statusCodeBlacklist": "status_code_blacklist",
    "fuzzDictionary": "fuzz_dictionary",
    "autoFuzzEnabled": "auto_fuzz_enabled",
    "shortLinkBruteEnabled": "short_link_brute_enabled",
    "shortLinkCharset": "short_link_charset",
    "shortLinkMinLength": "short_link_min_length",
    "shortLinkMaxLength": "short_link_max_length",
}


def _normalize_names(values: Optional[Iterable[Any]], *, strip_dot: bool = False) -> frozenset[str]:
    if not values:
        return frozenset()
    names: set[str] = set()
    for value in values:
        if value is None:
            continue
        name = str(value).strip().lower()
        if strip_dot:
            name = name.lstrip(".")
        if name:
            names.add(name)
    return frozenset(names)


def _normalize_codes(values: Optional[Iterable[Any]]) -> frozenset[int]:
    if not values:
        return frozenset()
    codes: set[int] = set()
    for value in values:
        if value is None or str(value).strip() == "":
            continue
        try:
            codes.add(int(value))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid status code: {value!r}") from exc
    return frozenset(codes)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class FilterConfig:
    """Immutable filtering and attack options.

    Instances are never mutated; use :meth:`evolve` to derive a new snapshot and
    hand it to :class:`ConfigHolder`.
    """

    domain_blacklist: frozenset[str] = frozenset()
    extension_blacklist: frozenset[str] = frozenset(DEFAULT_EXTENSION_BLACKLIST)
    status_code_blacklist: frozenset[int] = frozenset(DEFAULT_STATUS_BLACKLIST)
    fuzz_dictionary: Tuple[str, ...] = DEFAULT_FUZZ_DICTIONARY
    auto_fuzz_enabled: bool = False
    short_link_brute_enabled: bool = False
    short_link_charset: str = DEFAULT_CHARSET
    short_link_min_length: int = 1
    short_link_max_length: int = 4

    def __post_init__(self) -> None:
        if self.short_link_min_length < 1:
            raise ConfigError("shortLinkMinLength must be at least 1")
        if self.short_link_max_length < self.short_link_min_length:
            raise ConfigError("shortLinkMaxLength must be >= shortLinkMinLength")

    def evolve(self, **changes: Any) -> "FilterConfig":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "FilterConfig":
        """Builds a config from camelCase or snake_case keys.

        Missing keys keep their defaults and explicit ``None`` means "empty".
        """

        defaults = cls()
        if not raw:
            return defaults

        values: dict[str, Any] = {}
        for key, value in raw.items():
            attribute = _OPTION_NAMES.get(key, key)
            if attribute in cls.__dataclass_fields__:
                values[attribute] = value

        def pick(name: str) -> Any:
            return values[name] if name in values else getattr(defaults, name)

        fuzz_words = pick("fuzz_dictionary") or ()
        charset = pick("short_link_charset")
        try:
            min_length = int(pick("short_link_min_length"))
            max_length = int(pick("short_link_max_length"))
        except (TypeError, ValueError) as exc:
            raise ConfigError("Short link lengths must be integers") from exc

        return cls(
            domain_blacklist=_normalize_names(pick("domain_blacklist")),
            extension_blacklist=_normalize_names(pick("extension_blacklist"), strip_dot=True),
            status_code_blacklist=_normalize_codes(pick("status_code_blacklist")),
            fuzz_dictionary=tuple(
                str(word).strip() for word in fuzz_words if word and str(word).strip()
            ),
            auto_fuzz_enabled=_as_bool(pick("auto_fuzz_enabled")),
            short_link_brute_enabled=_as_bool(pick("short_link_brute_enabled")),
            short_link_charset=str(charset) if charset else DEFAULT_CHARSET,
            short_link_min_length=min_length,
            short_link_max_length=max_length,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "domainBlacklist": sorted(self.domain_blacklist),
            "extensionBlacklist": sorted(self.extension_blacklist),
            "statusCodeBlacklist": sorted(self.status_code_blacklist),
            "fuzzDictionary": list(self.fuzz_dictionary),
            "autoFuzzEnabled": self.auto_fuzz_enabled,
            "shortLinkBruteEnabled": self.short_link_brute_enabled,
            "shortLinkCharset": self.short_link_charset,
            "shortLinkMinLength": self.short_link_min_length,
            "shortLinkMaxLength": self.short_link_max_length,
        }


class ConfigHolder:
    """Single swappable reference to the active :class:`FilterConfig`."""

    def __init__(self, config: Optional[FilterConfig] = None) -> None:
        self._lock = threading.Lock()
        self._config = config or FilterConfig()

    def get(self) -> FilterConfig:
        return self._config

    def swap(self, config: FilterConfig) -> FilterConfig:
        """Installs ``config`` and returns the previous snapshot."""

        if not isinstance(config, FilterConfig):
            raise ConfigError("ConfigHolder only accepts FilterConfig instances")
        with self._lock:
            previous, self._config = self._config, config
        return previous


@dataclass(slots=True)
class EngineSettings:
    """Holds process-level options for the discovery engine."""

    root_domains: Tuple[str, ...] = ()
    config_path: Optional[Path] = None
    store_path: Optional[Path] = None
    scan_workers: int = 10
    listener_workers: int = 2
    probe_timeout: float = 10.0
    scan_delay: float = 0.1
    attack_delay: float = 0.05
    brute_force_limit: int = 1_000_000
    verify_tls: bool = False
    user_agent: str = "url-hunter/1.0"


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    return Path(value).expanduser().resolve() if value else None


def load_settings(
    *,
    root_domains: Optional[Iterable[str]] = None,
    config_path: Optional[str] = None,
    store_path: Optional[str] = None,
) -> EngineSettings:
    """Builds ``EngineSettings`` from arguments and environment variables."""

    load_dotenv()  # Loads .env values if present

    if root_domains is None:
        root_domains = os.getenv("URL_HUNTER_ROOT_DOMAINS", "").split(",")

    try:
        settings = EngineSettings(
            root_domains=tuple(
                domain.strip().lower() for domain in root_domains if domain and domain.strip()
            ),
            config_path=Path(config_path).resolve() if config_path else _env_path("URL_HUNTER_CONFIG"),
            store_path=Path(store_path).resolve() if store_path else _env_path("URL_HUNTER_STORE"),
            scan_workers=int(os.getenv("URL_HUNTER_SCAN_WORKERS", "10")),
            listener_workers=int(os.getenv("URL_HUNTER_LISTENER_WORKERS", "2")),
            probe_timeout=float(os.getenv("URL_HUNTER_PROBE_TIMEOUT", "10")),
            scan_delay=float(os.getenv("URL_HUNTER_SCAN_DELAY", "0.1")),
            attack_delay=float(os.getenv("URL_HUNTER_ATTACK_DELAY", "0.05")),
            brute_force_limit=int(os.getenv("URL_HUNTER_BRUTE_LIMIT", "1000000")),
            verify_tls=_as_bool(os.getenv("URL_HUNTER_VERIFY_TLS", "false")),
            user_agent=os.getenv("URL_HUNTER_USER_AGENT") or "url-hunter/1.0",
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc

    if settings.scan_workers < 1 or settings.listener_workers < 1:
        raise ConfigError("Worker pools need at least one worker")
    return settings
