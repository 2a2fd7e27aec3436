import pytest

from url_hunter.core.errors import BruteForceLimitError  # type: ignore[import]
from url_hunter.scanner.bruteforce import (  # type: ignore[import]
    ShortLinkBruteForcer,
    estimate_combinations,
    iter_short_links,
    unique_charset,
)


def test_generation_order_is_length_then_odometer():
    assert list(iter_short_links("ab", 2)) == ["a", "b", "aa", "ab", "ba", "bb"]


def test_generation_respects_charset_order():
    assert list(iter_short_links("ba", 2)) == ["b", "a", "bb", "ba", "ab", "aa"]


def test_generation_is_exhaustive():
    codes = list(iter_short_links("xyz", 3))

    assert len(codes) == 3 + 9 + 27
    assert len(set(codes)) == len(codes)
    assert codes[-1] == "zzz"


def test_duplicate_charset_characters_are_ignored():
    assert unique_charset("abca") == "abc"
    assert list(iter_short_links("aab", 1)) == ["a", "b"]


def test_empty_charset_generates_nothing():
    assert list(iter_short_links("", 3)) == []


def test_cancellation_stops_before_next_candidate():
    enabled = {"value": True}
    generated = []

    for code in iter_short_links("ab", 4, should_continue=lambda: enabled["value"]):
        generated.append(code)
        if len(generated) == 3:
            enabled["value"] = False

    assert generated == ["a", "b", "aa"]


def test_estimate_combinations():
    assert estimate_combinations(2, 2) == 6
    assert estimate_combinations(62, 4) == 62 + 62**2 + 62**3 + 62**4
    assert estimate_combinations(0, 4) == 0


def test_forcer_probes_each_code_and_tags_hits():
    probed = []

    def probe(url, note):
        probed.append((url, note))
        return {"url": url} if url.endswith("/ab") else None

    forcer = ShortLinkBruteForcer(probe)
    found = forcer.run("http://s.example.com/", "ab", 2)

    assert [url for url, _ in probed] == [
        "http://s.example.com/a",
        "http://s.example.com/b",
        "http://s.example.com/aa",
        "http://s.example.com/ab",
        "http://s.example.com/ba",
        "http://s.example.com/bb",
    ]
    assert probed[3][1] == "Short link brute force: ab"
    assert found == [{"url": "http://s.example.com/ab"}]


def test_forcer_refuses_runs_above_limit():
    forcer = ShortLinkBruteForcer(lambda url, note: None, limit=10)

    with pytest.raises(BruteForceLimitError) as excinfo:
        forcer.run("http://s.example.com", "abc", 2)

    assert excinfo.value.combinations == 12


def test_forcer_force_bypasses_limit():
    calls = []
    forcer = ShortLinkBruteForcer(lambda url, note: calls.append(url), limit=1)

    forcer.run("http://s.example.com", "ab", 1, force=True)

    assert calls == ["http://s.example.com/a", "http://s.example.com/b"]
