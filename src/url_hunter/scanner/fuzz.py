"""Wordlist fuzzing below a confirmed path."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from ..core.models import DiscoveryRecord
from ..recon.utils import append_segment

logger = logging.getLogger(__name__)

FUZZ_NOTE = "Fuzz: {word}"


class DictionaryFuzzAttacker:
    """Appends each wordlist entry to a base URL and probes the result."""

    def __init__(
        self,
        probe: Callable[[str, str], Optional[DiscoveryRecord]],
        *,
        should_continue: Callable[[], bool] = lambda: True,
        pause: Callable[[], None] = lambda: None,
    ) -> None:
        self._probe = probe
        self._should_continue = should_continue
        self._pause = pause

    def run(self, base_url: str, words: Iterable[str]) -> List[DiscoveryRecord]:
        found: List[DiscoveryRecord] = []
        for word in words:
            if not self._should_continue():
                logger.info("Fuzzing of %s stopped before %r", base_url, word)
                break
            record = self._probe(append_segment(base_url, word), FUZZ_NOTE.format(word=word))
            if record is not None:
                found.append(record)
            self._pause()
        return found
