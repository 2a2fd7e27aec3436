"""Active probing: list scans, wordlist fuzzing and short link brute force."""

from .active import ActiveScanner
from .bruteforce import ShortLinkBruteForcer, iter_short_links
from .fuzz import DictionaryFuzzAttacker
from .http_client import RequestsHttpClient

__all__ = [
    "ActiveScanner",
    "DictionaryFuzzAttacker",
    "RequestsHttpClient",
    "ShortLinkBruteForcer",
    "iter_short_links",
]
