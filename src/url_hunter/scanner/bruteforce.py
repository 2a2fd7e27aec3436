"""Short-link enumeration over a configurable alphabet."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional

from ..core.errors import BruteForceLimitError
from ..core.models import DiscoveryRecord
from ..recon.utils import append_segment

logger = logging.getLogger(__name__)

BRUTE_NOTE = "Short link brute force: {code}"


def _always() -> bool:
    return True


def unique_charset(charset: str) -> str:
    """Drops repeated characters while keeping their first position."""

    return "".join(dict.fromkeys(charset))


def estimate_combinations(charset_size: int, max_length: int, min_length: int = 1) -> int:
    if charset_size <= 0 or max_length < min_length:
        return 0
    return sum(charset_size**length for length in range(max(min_length, 1), max_length + 1))


def iter_short_links(
    charset: str,
    max_length: int,
    *,
    min_length: int = 1,
    should_continue: Callable[[], bool] = _always,
) -> Iterator[str]:
    """Yields every string over ``charset`` from ``min_length`` to ``max_length``.

    Shorter strings come first. Within a length the leftmost character is the
    most significant digit of an odometer whose digits follow ``charset`` order,
    so ``"ab"`` up to length 2 gives ``a b aa ab ba bb``.

    ``should_continue`` is consulted before each length and before every yielded
    value; once it returns ``False`` the generator stops.
    """

    alphabet = unique_charset(charset)
    radix = len(alphabet)
    if radix == 0:
        return

    for length in range(max(min_length, 1), max_length + 1):
        if not should_continue():
            return
        digits = [0] * length
        while True:
            if not should_continue():
                return
            yield "".join(alphabet[digit] for digit in digits)

            position = length - 1
            while position >= 0:
                digits[position] += 1
                if digits[position] < radix:
                    break
                digits[position] = 0
                position -= 1
            if position < 0:
                break


class ShortLinkBruteForcer:
    """Probes every generated short code appended to a base URL."""

    def __init__(
        self,
        probe: Callable[[str, str], Optional[DiscoveryRecord]],
        *,
        should_continue: Callable[[], bool] = _always,
        pause: Callable[[], None] = lambda: None,
        limit: Optional[int] = None,
    ) -> None:
        self._probe = probe
        self._should_continue = should_continue
        self._pause = pause
        self.limit = limit

    def check_limit(self, charset: str, max_length: int) -> int:
        combinations = estimate_combinations(len(unique_charset(charset)), max_length)
        if self.limit is not None and combinations > self.limit:
            raise BruteForceLimitError(combinations, self.limit)
        return combinations

    def run(self, base_url: str, charset: str, max_length: int, *, force: bool = False) -> List[DiscoveryRecord]:
        if force:
            combinations = estimate_combinations(len(unique_charset(charset)), max_length)
        else:
            combinations = self.check_limit(charset, max_length)
        logger.info(
            "Starting short link brute force on %s (%d candidates)", base_url, combinations
        )

        found: List[DiscoveryRecord] = []
        attempts = 0
        for code in iter_short_links(charset, max_length, should_continue=self._should_continue):
            record = self._probe(append_segment(base_url, code), BRUTE_NOTE.format(code=code))
            attempts += 1
            if record is not None:
                found.append(record)
            self._pause()

        logger.info(
            "Short link brute force on %s finished after %d/%d probes (%d hits)",
            base_url,
            attempts,
            combinations,
            len(found),
        )
        return found
