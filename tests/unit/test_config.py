import json

import pytest

import url_hunter.core.config as config_module  # type: ignore[import]
from url_hunter.core.errors import ConfigError  # type: ignore[import]

from tests.helpers.url_hunter_imports import ConfigHolder, FilterConfig, MemoryStore, load_settings


def test_load_settings_uses_environment(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    config_path = tmp_path / "filters.json"

    monkeypatch.setenv("URL_HUNTER_ROOT_DOMAINS", "Example.com, other.org ,")
    monkeypatch.setenv("URL_HUNTER_CONFIG", str(config_path))
    monkeypatch.setenv("URL_HUNTER_SCAN_WORKERS", "4")
    monkeypatch.setenv("URL_HUNTER_SCAN_DELAY", "0")
    monkeypatch.setenv("URL_HUNTER_VERIFY_TLS", "yes")

    settings = load_settings()

    assert settings.root_domains == ("example.com", "other.org")
    assert settings.config_path == config_path.resolve()
    assert settings.scan_workers == 4
    assert settings.scan_delay == 0
    assert settings.verify_tls is True


def test_load_settings_defaults(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    for key in [
        "URL_HUNTER_ROOT_DOMAINS",
        "URL_HUNTER_CONFIG",
        "URL_HUNTER_STORE",
        "URL_HUNTER_SCAN_WORKERS",
        "URL_HUNTER_LISTENER_WORKERS",
        "URL_HUNTER_VERIFY_TLS",
        "URL_HUNTER_BRUTE_LIMIT",
    ]:
        monkeypatch.delenv(key, raising=False)

    settings = load_settings(root_domains=["example.com"])

    assert settings.root_domains == ("example.com",)
    assert settings.config_path is None
    assert settings.scan_workers == 10
    assert settings.listener_workers == 2
    assert settings.brute_force_limit == 1_000_000
    assert settings.verify_tls is False


def test_load_settings_rejects_bad_numbers(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    monkeypatch.setenv("URL_HUNTER_SCAN_WORKERS", "many")

    with pytest.raises(ConfigError):
        load_settings(root_domains=[])


def test_filter_config_defaults():
    config = FilterConfig()

    assert "png" in config.extension_blacklist
    assert len(config.extension_blacklist) == 12
    assert config.status_code_blacklist == frozenset({403, 404, 501, 502, 503})
    assert len(config.short_link_charset) == 62
    assert (config.short_link_min_length, config.short_link_max_length) == (1, 4)
    assert config.auto_fuzz_enabled is False
    assert config.short_link_brute_enabled is False


def test_filter_config_from_dict_normalizes_values():
    config = FilterConfig.from_dict(
        {
            "domainBlacklist": [" CDN.Example.com ", "", None],
            "extensionBlacklist": [".PNG", "css"],
            "statusCodeBlacklist": ["404", 500],
            "fuzzDictionary": ["admin", " ", "api"],
            "autoFuzzEnabled": "true",
            "shortLinkMaxLength": 2,
            "unknownOption": 1,
        }
    )

    assert config.domain_blacklist == frozenset({"cdn.example.com"})
    assert config.extension_blacklist == frozenset({"png", "css"})
    assert config.status_code_blacklist == frozenset({404, 500})
    assert config.fuzz_dictionary == ("admin", "api")
    assert config.auto_fuzz_enabled is True
    assert config.short_link_max_length == 2


def test_filter_config_null_lists_reject_nothing():
    config = FilterConfig.from_dict({"extensionBlacklist": None, "statusCodeBlacklist": None})

    assert config.extension_blacklist == frozenset()
    assert config.status_code_blacklist == frozenset()


def test_filter_config_rejects_inverted_lengths():
    with pytest.raises(ConfigError):
        FilterConfig.from_dict({"shortLinkMinLength": 3, "shortLinkMaxLength": 2})


def test_filter_config_round_trips_through_dict():
    config = FilterConfig(domain_blacklist=frozenset({"cdn.example.com"}))

    assert FilterConfig.from_dict(config.to_dict()) == config


def test_config_holder_swaps_whole_snapshot():
    holder = ConfigHolder()
    original = holder.get()
    updated = original.evolve(status_code_blacklist=frozenset({500}))

    previous = holder.swap(updated)

    assert previous is original
    assert holder.get() is updated
    assert original.status_code_blacklist == frozenset({403, 404, 501, 502, 503})


def test_store_config_falls_back_to_defaults_on_corrupt_file(tmp_path):
    path = tmp_path / "filters.json"
    path.write_text("{not json", encoding="utf-8")

    assert MemoryStore(path).load_config() == FilterConfig()


def test_store_saves_and_loads_config(tmp_path):
    path = tmp_path / "filters.json"
    store = MemoryStore(path)
    config = FilterConfig(fuzz_dictionary=("admin",), short_link_max_length=2)

    store.save_config(config)

    assert json.loads(path.read_text(encoding="utf-8"))["fuzzDictionary"] == ["admin"]
    assert store.load_config() == config
